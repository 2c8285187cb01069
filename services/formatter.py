# services/formatter.py

INTRO = "Generate test questions based on the following notes.\n\n"
OUTRO = "Ensure that the test questions are relevant to the content and test key concepts."


def format_documents(documents) -> str:
    """Render documents, in the given order, as one prompt block."""
    parts = [INTRO]
    for doc in documents:
        parts.append(f"### Note: {doc.path}\n")
        parts.append(f"Content:\n{doc.content}\n\n")
    parts.append(OUTRO)
    return "".join(parts)
