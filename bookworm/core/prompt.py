SYSTEM_PROMPT = (
    "You are a helpful AI assistant in a voice conversation app. "
    "Keep your responses conversational, friendly, and concise (under 100 words). "
    "You can help with general questions, have casual conversations, and provide "
    "assistance on various topics."
)

GREETING = (
    "Hi there, little reader! I'm your friendly bookworm friend! "
    "I love books so much that I eat them... just kidding! I read them to you instead! "
    'Just show me a book page and say "read this page" or "what do you see" '
    "and I'll tell you all about it! Let's go on a reading adventure together!"
)

VERIFY_PROMPT = 'Say "LLM API key is working correctly" in exactly those words.'


def page_context_note(page_text: str) -> str:
    return (
        f'The child just showed me a page from their book that says: "{page_text}". '
        "I should be ready to answer questions about this text in a child-friendly way."
    )


def page_analysis_prompt(page_text: str) -> str:
    return (
        f'I just read a page from a book that contains the following text: "{page_text}".\n\n'
        "Please provide a helpful, engaging response that:\n"
        "1. Acknowledges what was read\n"
        "2. Provides a brief summary or highlights key points\n"
        "3. Asks an engaging question to encourage discussion\n"
        "4. Uses child-friendly language\n"
        "5. Keeps the response conversational and encouraging\n\n"
        "Make it sound natural and friendly, as if you're a helpful reading assistant."
    )
