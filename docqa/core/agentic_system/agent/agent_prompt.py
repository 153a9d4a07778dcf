"""
Retrieval agent prompts.

Prompt templates for every provider call the retrieval agent makes: grounded
answers, general-knowledge answers, follow-up rewriting, clarifying questions,
query expansion and thread titles.

Dependencies: langchain_core.prompts
System role: Prompt templates for retrieval agent behavior
"""

from langchain_core.prompts import ChatPromptTemplate

NO_INFORMATION_ANSWER = (
    "I couldn't find relevant information in your documents to answer this question. "
    "Try rephrasing your question or uploading documents that cover this topic."
)

ANSWER_SYSTEM_PROMPT = """You are a helpful assistant that answers questions from the user's documents.

## Instructions
1. Answer using the provided sources and the conversation history
2. If the sources do not contain the answer, say: "I couldn't find specific information about this in your documents."
3. Mention the source document names you relied on
4. Be concise but thorough; lead with the most relevant information
5. Never invent facts that are not in the sources

## Source Format
Each source block starts with `[Source N: document name]` followed by the text.
Blocks from the same document appear in their original order."""

ANSWER_PROMPT = ChatPromptTemplate.from_messages([
    ("system", ANSWER_SYSTEM_PROMPT),
    ("human", """{chat_history}

Sources:
{context}

Question: {question}"""),
])

GENERAL_KNOWLEDGE_SYSTEM_PROMPT = """You are a helpful assistant.
The user's documents contain nothing relevant to this question, so answer from general knowledge.
Start by stating briefly that the answer is not based on the user's documents."""

GENERAL_KNOWLEDGE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", GENERAL_KNOWLEDGE_SYSTEM_PROMPT),
    ("human", """{chat_history}

Question: {question}"""),
])

FOLLOW_UP_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """Rewrite the user's latest question into a standalone question using the conversation.
Replace pronouns and references ("it", "that", "the second one") with what they refer to.
Return only the rewritten question. If it is already standalone, return it unchanged."""),
    ("human", """Conversation:
{chat_history}

Latest question: {question}

Standalone question:"""),
])

CLARIFY_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """The user's question is short or broad. Ask exactly one clarifying question
that would help find the right information in their documents. Keep it under 20 words.
Return only the question."""),
    ("human", "{question}"),
])

EXPANSION_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """Suggest 2-3 alternative search terms or synonyms for the query.
Return them as a single comma-separated line with no explanation."""),
    ("human", "{question}"),
])

THREAD_TITLE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", "Write a short title of at most 6 words for a conversation starting with this message. Return only the title."),
    ("human", "{question}"),
])
