"""
Conversational retrieval service.

Pipeline:
1. Condense the follow-up question and chat history into a standalone question
2. Retrieve up to top_k documents (similarity search on the standalone
   question, or the store's natural order in "flat" mode)
3. Join document contents into a context block
4. Stream an answer grounded in that context
"""

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Any

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate

from domain.errors import InvalidRequestError
from domain.models import ChatMessage, SourcePreview
from services.output_parsers import BytesOutputParser
from .config import RetrievalConfig, FLAT
from .vector_store import IVectorStore

logger = logging.getLogger(__name__)

CONDENSE_QUESTION_TEMPLATE = """Given the following conversation and a follow up question, rephrase the follow up question to be a standalone question, in its original language.

Chat History:
{chat_history}
Follow Up Input: {question}
Standalone question:"""
CONDENSE_QUESTION_PROMPT = PromptTemplate.from_template(CONDENSE_QUESTION_TEMPLATE)

ANSWER_TEMPLATE = """Answer the question based only on the following context:
{context}

Question: {question}

Make sure your answer is helpful and indicates it's based on the information provided.
"""
ANSWER_PROMPT = PromptTemplate.from_template(ANSWER_TEMPLATE)

RETRIEVAL_TEMPERATURE = 0.2
SOURCE_PREVIEW_CHARS = 50


def format_chat_history(messages: List[ChatMessage]) -> str:
    turns = []
    for message in messages:
        if message.role == "user":
            turns.append(f"Human: {message.content}")
        elif message.role == "assistant":
            turns.append(f"Assistant: {message.content}")
        else:
            turns.append(f"{message.role}: {message.content}")
    return "\n".join(turns)


def combine_documents(documents: List[Document]) -> str:
    return "\n\n".join(document.page_content for document in documents)


def source_previews(documents: List[Document]) -> List[Dict[str, Any]]:
    return [
        SourcePreview(
            pageContent=document.page_content[:SOURCE_PREVIEW_CHARS] + "...",
            metadata=document.metadata,
        ).model_dump()
        for document in documents
    ]


def encode_sources(documents: List[Document]) -> str:
    """Base64 of the JSON source previews, for the x-sources header."""
    payload = json.dumps(source_previews(documents), default=str)
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


@dataclass
class RetrievalPlan:
    """Everything resolved before the answer starts streaming."""

    question: str
    standalone_question: str
    chat_history: str
    message_index: int
    documents: List[Document] = field(default_factory=list)

    @property
    def context(self) -> str:
        return combine_documents(self.documents)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "x-message-index": str(self.message_index),
            "x-sources": encode_sources(self.documents),
        }


class RetrievalService:
    """Answers the latest message from stored documents."""

    def __init__(
        self,
        llm: BaseChatModel,
        embeddings: Embeddings,
        vector_store: IVectorStore,
        config: RetrievalConfig
    ):
        self.llm = llm
        self.embeddings = embeddings
        self.vector_store = vector_store
        self.config = config

        self.condense_chain = CONDENSE_QUESTION_PROMPT | llm | StrOutputParser()
        self.answer_chain = ANSWER_PROMPT | llm | BytesOutputParser()

        logger.info(f"Initialized retrieval service (strategy={config.strategy}, top_k={config.top_k})")

    async def condense_question(self, question: str, chat_history: str) -> str:
        """Rewrite a follow-up into a standalone question. No history → unchanged."""
        if not chat_history:
            return question

        standalone = await self.condense_chain.ainvoke({
            "chat_history": chat_history,
            "question": question,
        })
        standalone = standalone.strip() or question
        logger.info(f"Standalone question for retrieval: {standalone}")
        return standalone

    async def log_document_count(self) -> None:
        """Log how many rows the store holds. A failing count does not stop retrieval."""
        try:
            total = await self.vector_store.count()
        except Exception as e:
            logger.error(f"Error counting documents: {e}")
            return
        logger.info(f"Document table count: {total}")

    async def retrieve(self, query: str) -> List[Document]:
        await self.log_document_count()

        if self.config.strategy == FLAT:
            documents = await self.vector_store.fetch(limit=self.config.top_k)
        else:
            query_embedding = await self.embeddings.aembed_query(query)
            documents = await self.vector_store.similarity_search(
                query_embedding, k=self.config.top_k
            )

        documents = documents[:self.config.top_k]
        logger.info(f"Retrieved {len(documents)} documents")
        return documents

    async def prepare(self, messages: List[ChatMessage]) -> RetrievalPlan:
        if not messages:
            raise InvalidRequestError("messages must contain at least one message")

        previous, current = messages[:-1], messages[-1]
        chat_history = format_chat_history(previous)
        standalone = await self.condense_question(current.content, chat_history)

        return RetrievalPlan(
            question=current.content,
            standalone_question=standalone,
            chat_history=chat_history,
            message_index=len(previous) + 1,
            documents=await self.retrieve(standalone),
        )

    def stream_answer(self, plan: RetrievalPlan) -> AsyncIterator[bytes]:
        return self.answer_chain.astream({
            "context": plan.context,
            "question": plan.standalone_question,
        })
