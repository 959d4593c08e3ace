"""Prompt templates for the gate, the extractor and the three answer modes."""

from typing import Optional


KNOWLEDGE_CHECK_PROMPT = """You are an AI assistant that needs to determine if you have sufficient knowledge to answer a question.

Conversation: {conversation}

Analyze this conversation and determine:
1. Is there a clear question being asked?
2. Do you have sufficient knowledge to provide a comprehensive answer?
3. Or would you need external documents/context to give a complete response?

Respond with ONLY one of these formats:
- "KNOWN: [brief answer preview]" - if you can answer comprehensively
- "NEED_CONTEXT: [what specific information you need]" - if you need external sources

Examples:
- For "What is React?" -> "KNOWN: React is a JavaScript library..."
- For "What's my GPA?" -> "NEED_CONTEXT: Personal academic information"
- For "Company policy on remote work?" -> "NEED_CONTEXT: Specific company policies\""""


QUESTION_EXTRACTION_PROMPT = """Analyze the following interview transcript and extract the most recent or important question that needs to be answered.

Rules:
1. Focus on questions from the interviewer that require a response
2. Ignore casual conversation or confirmations
3. If multiple questions exist, prioritize the most recent unanswered one
4. Return only ONE primary question
5. Provide confidence score (0-1) based on clarity

Transcript:
\"\"\"
{transcript}
\"\"\"

Return a JSON response with:
{{
  "question": "The extracted question",
  "context": "Brief context around the question",
  "confidence": 0.95
}}

If no clear question is found, return:
{{
  "question": "",
  "context": "",
  "confidence": 0
}}

JSON:"""


DIRECT_PROMPT = """You are an expert AI interview assistant helping with technical interview questions. Provide clear, concise, and helpful responses based on your knowledge.

{background}

Recent Interview Conversation:
{conversation}

Provide a helpful response:"""


RAG_PROMPT = """You are an expert AI interview assistant. Use the provided context along with your knowledge to give the most comprehensive and accurate answer possible.

Context Information:
{context}

{background}

Question: {question}

Provide a clear, comprehensive response using both the context and your expertise:"""


SUMMARIZE_PROMPT = """You are a summarizer. You are summarizing the given text. Summarize the following text. Only write summary.
Content:
{text}
Summary:
"""


def build_knowledge_check_prompt(conversation: str) -> str:
    return KNOWLEDGE_CHECK_PROMPT.format(conversation=conversation)


def build_extraction_prompt(transcript: str) -> str:
    return QUESTION_EXTRACTION_PROMPT.format(transcript=transcript)


def build_direct_prompt(background: Optional[str], conversation: str) -> str:
    """Answer from the model's own knowledge."""
    return DIRECT_PROMPT.format(
        background=f"Background Context: {background}" if background else "",
        conversation=conversation,
    )


def build_rag_prompt(background: Optional[str], question: str, context: str) -> str:
    """Answer grounded in the fused retrieval context."""
    return RAG_PROMPT.format(
        context=context,
        background=f"Background: {background}" if background else "",
        question=question,
    )


def build_summarize_prompt(text: str) -> str:
    return SUMMARIZE_PROMPT.format(text=text)
