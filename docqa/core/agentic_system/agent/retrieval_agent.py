"""
Retrieval agent.

State machine tying the classifier, the hybrid retriever, the tiered cache and
the generation provider together:

    ResolveFollowUp -> Classify -> MaybeClarify -> Retrieve
        -> (low-confidence expansion) -> (fallback chain) -> Answer -> Persist

Every step appends a typed trace event. ``answer()`` returns a complete
``AgentAnswer``; ``stream()`` yields ordered ``StreamEvent``s with ``thread``
first and ``done`` or ``error`` last.

Dependencies: langchain_core, docqa.core.retrieval, docqa.core.cache, docqa.boundary
System role: Retrieval orchestration for question answering
"""

import logging
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import BaseMessage

from docqa.boundary.db.chat_store import ChatStore
from docqa.boundary.providers.base import GenerationOptions, GenerationProvider
from docqa.configs.settings import Settings
from docqa.core.agentic_system.agent.agent_prompt import (
    ANSWER_PROMPT,
    CLARIFY_PROMPT,
    EXPANSION_PROMPT,
    FOLLOW_UP_PROMPT,
    GENERAL_KNOWLEDGE_PROMPT,
    NO_INFORMATION_ANSWER,
    THREAD_TITLE_PROMPT,
)
from docqa.core.agentic_system.agent.confidence import ConfidenceScorer
from docqa.core.agentic_system.agent.context import (
    format_context,
    format_history,
    order_for_context,
    unique_sources,
)
from docqa.core.cache.keys import ANSWER_NAMESPACE
from docqa.core.cache.tiered_cache import TieredCache
from docqa.core.exceptions import DocQAException, EmptyQueryError, ProviderError
from docqa.core.retrieval.hybrid_retriever import DOCUMENT, VECTOR, HybridRetriever, RetrievalOutcome
from docqa.core.text import normalize
from docqa.models.answer import AgentAnswer, AnswerMetadata, AnswerOptions, SessionContext
from docqa.models.chunk import ScoredChunk
from docqa.models.classification import QueryClassification, RetrievalConfig
from docqa.models.streaming import StreamEvent, StreamEventType
from docqa.models.trace import (
    AnswerStep,
    ClarifyStep,
    ExpansionStep,
    FallbackStep,
    FollowUpStep,
    PersistStep,
    QueryAnalysisStep,
    RetrievalStep,
    TraceStep,
)
from docqa.observability.log_utils import log_exception_with_context, safe_log_value

logger = logging.getLogger(__name__)

FOLLOW_UP_HISTORY_TURNS = 4
FOLLOW_UP_HISTORY_CHARS = 800
EXPANSION_MAX_CHARS = 100
CLARIFY_MAX_WORDS = 20
TITLE_MAX_WORDS = 6
TITLE_FALLBACK_CHARS = 30
SNIPPET_CHARS = 200

MODE_ANSWER = "answer"
MODE_GENERAL_KNOWLEDGE = "general_knowledge"
MODE_NO_RESULTS = "no_results"


@dataclass
class _AgentRun:
    """Mutable state of one query, owned by a single call."""

    query: str
    session: SessionContext
    options: AnswerOptions
    started: float = field(default_factory=time.perf_counter)
    effective_query: str = ""
    trace: list[TraceStep] = field(default_factory=list)
    classification: QueryClassification | None = None
    config: RetrievalConfig | None = None
    chunks: list[ScoredChunk] = field(default_factory=list)
    strategy: str = "hybrid"
    rerank_used: bool = False
    retrieval_cached: bool = False
    resolved_query: str | None = None
    asked_clarifying: str | None = None
    mode: str = MODE_ANSWER
    cached_answer: AgentAnswer | None = None

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000

    @property
    def top_score(self) -> float | None:
        return max((c.similarity for c in self.chunks), default=None)


def _step_event(step: str, **data: Any) -> StreamEvent:
    return StreamEvent(event=StreamEventType.STEP, data={"step": step, **data})


class RetrievalAgent:
    """
    Question answering over the chunk store with graduated fallbacks.

    Collaborators are injected once at startup; the agent holds no per-query
    state between calls.
    """

    def __init__(
        self,
        retriever: HybridRetriever,
        generator: GenerationProvider,
        chat_store: ChatStore | None = None,
        cache: TieredCache | None = None,
        settings: Settings | None = None,
        general_knowledge: bool | None = None,
    ) -> None:
        """
        Initialize retrieval agent.

        Args:
            retriever: Hybrid retrieval engine (owns the classifier and chunk store)
            generator: Generation provider for answers and auxiliary rewrites
            chat_store: Persistence sink (persistence skipped when None)
            cache: Tiered cache for whole answers
            settings: Application settings
            general_knowledge: Override the general-knowledge fallback switch
        """
        self.retriever = retriever
        self.classifier = retriever.classifier
        self.generator = generator
        self.chat_store = chat_store
        self.cache = cache
        self.settings = settings or Settings()
        self.scorer = ConfidenceScorer(self.settings.confidence)
        self.general_knowledge = (
            self.settings.providers.general_knowledge_enabled if general_knowledge is None else general_knowledge
        )

    @property
    def _answer_options(self) -> GenerationOptions:
        providers = self.settings.providers
        return GenerationOptions(temperature=providers.temperature, max_tokens=providers.max_output_tokens)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def answer(
        self,
        query: str,
        session: SessionContext | None = None,
        options: AnswerOptions | None = None,
    ) -> AgentAnswer:
        """
        Answer a query and persist the exchange.

        Args:
            query: User query
            session: Conversation scope and history
            options: Strategy, rerank and cache switches

        Returns:
            AgentAnswer: Answer, chunks, confidence, sources, trace and metadata

        Raises:
            EmptyQueryError: Query is empty or whitespace-only
            ProviderError: Provider failure while generating the answer
            DimensionMismatchError: Corpus and query embeddings disagree
        """
        run = self._start(query, session, options)
        logger.info(f"{__name__}:answer - START query_len={len(query)} thread_id={run.session.thread_id}")

        async for _ in self._plan(run):
            pass

        if run.cached_answer is not None:
            return await self._finish_cached(run)

        text, tokens_used = await self._generate(run)
        answer = await self._finish(run, text, tokens_used, streamed=False)
        logger.info(
            f"{__name__}:answer - DONE mode={run.mode} confidence={answer.confidence} "
            f"chunks={len(answer.chunks)} elapsed_ms={run.elapsed_ms:.0f}"
        )
        return answer

    def stream(
        self,
        query: str,
        session: SessionContext | None = None,
        options: AnswerOptions | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Answer a query as a stream of events.

        Empty queries raise at call time, before the first event. Afterwards every failure
        is reported as a final ``error`` event. Closing the iterator early
        closes the provider token stream.

        Args:
            query: User query
            session: Conversation scope and history
            options: Strategy, rerank and cache switches

        Yields:
            StreamEvent: thread, step, clarify, retrieval, answer fragments, done | error
        """
        run = self._start(query, session, options)
        return self._stream_events(run)

    async def _stream_events(self, run: _AgentRun) -> AsyncIterator[StreamEvent]:
        logger.info(f"{__name__}:stream - START query_len={len(run.query)} thread_id={run.session.thread_id}")
        yield StreamEvent(event=StreamEventType.THREAD, data={"thread_id": run.session.thread_id})

        try:
            async for event in self._plan(run):
                yield event

            if run.cached_answer is not None:
                answer = await self._finish_cached(run)
                yield StreamEvent(event=StreamEventType.ANSWER, data={"content": answer.answer})
                yield self._done_event(answer)
                return

            fragments: list[str] = []
            if run.mode == MODE_NO_RESULTS:
                fragments.append(NO_INFORMATION_ANSWER)
                yield StreamEvent(event=StreamEventType.ANSWER, data={"content": NO_INFORMATION_ANSWER})
            else:
                logger.info(f"{__name__}:stream - Step 5: Streaming answer mode={run.mode}")
                try:
                    async with self.generator.stream_generate(self._answer_messages(run), self._answer_options) as tokens:
                        async for fragment in tokens:
                            if not fragment:
                                continue
                            fragments.append(fragment)
                            yield StreamEvent(event=StreamEventType.ANSWER, data={"content": fragment})
                except ProviderError as e:
                    # General knowledge degrades to the no-information answer if nothing was sent yet.
                    if run.mode != MODE_GENERAL_KNOWLEDGE or fragments:
                        raise
                    log_exception_with_context(logger, f"{__name__}:stream - general knowledge failed", e)
                    self._no_results(run)
                    fragments.append(NO_INFORMATION_ANSWER)
                    yield StreamEvent(event=StreamEventType.ANSWER, data={"content": NO_INFORMATION_ANSWER})
                logger.info(f"{__name__}:stream - Step 5 OK: fragments={len(fragments)}")

            answer = await self._finish(run, "".join(fragments), 0, streamed=True)
            yield self._done_event(answer)
            logger.info(f"{__name__}:stream - DONE confidence={answer.confidence} elapsed_ms={run.elapsed_ms:.0f}")
        except DocQAException as e:
            log_exception_with_context(logger, f"{__name__}:stream - FAILED", e)
            yield StreamEvent(event=StreamEventType.ERROR, data={"code": e.code, "message": e.message})
        except Exception as e:
            log_exception_with_context(logger, f"{__name__}:stream - FAILED unexpected", e)
            yield StreamEvent(
                event=StreamEventType.ERROR,
                data={"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
            )

    async def generate_title(self, first_message: str) -> str:
        """
        Short thread title for a first message.

        Args:
            first_message: Opening user message

        Returns:
            str: At most six words, or the truncated message when generation fails
        """
        fallback = first_message.strip()[:TITLE_FALLBACK_CHARS]
        text = await self._auxiliary("generate_title", THREAD_TITLE_PROMPT.format_messages(question=first_message))
        if not text:
            return fallback
        title = " ".join(text.strip().strip('"').split()[:TITLE_MAX_WORDS])
        return title or fallback

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _start(self, query: str, session: SessionContext | None, options: AnswerOptions | None) -> _AgentRun:
        if not query or not query.strip():
            raise EmptyQueryError()
        query = query.strip()
        return _AgentRun(
            query=query,
            session=session or SessionContext(),
            options=options or AnswerOptions(),
            effective_query=query,
        )

    async def _plan(self, run: _AgentRun) -> AsyncIterator[StreamEvent]:
        """Run every step before answer generation, yielding progress events."""
        if await self._lookup_cached_answer(run):
            yield _step_event("cache", hit=True)
            return

        # Step 1: Follow-up resolution
        if run.session.history and self.classifier.is_follow_up_candidate(run.query):
            logger.info(f"{__name__}:_plan - Step 1: Resolving follow-up")
            await self._resolve_follow_up(run)
            yield _step_event("follow_up", resolved_query=run.resolved_query)

        # Step 2: Classification
        logger.info(f"{__name__}:_plan - Step 2: Classifying query")
        known = await self.retriever.store.list_documents()
        if run.session.scope is not None:
            allowed = set(run.session.scope)
            known = {doc_id: name for doc_id, name in known.items() if doc_id in allowed}
        classification = self.classifier.classify(run.effective_query, known)
        if run.resolved_query is not None:
            classification = classification.model_copy(update={"is_follow_up": True})
        run.classification = classification
        run.config = self.classifier.retrieval_config(classification)
        run.trace.append(
            QueryAnalysisStep(
                query_type=classification.type.value,
                threshold=run.config.threshold,
                top_k=run.config.top_k,
                key_terms=classification.key_terms,
                document_reference=(
                    classification.document_reference.document_name if classification.document_reference else None
                ),
            )
        )
        yield _step_event(
            "query_analysis",
            query_type=classification.type.value,
            threshold=run.config.threshold,
            document_reference=run.trace[-1].document_reference,
        )

        # Step 3: Clarification (never after a resolved follow-up)
        if self._should_clarify(run):
            logger.info(f"{__name__}:_plan - Step 3: Asking clarifying question")
            question = await self._clarify(run)
            if question:
                yield StreamEvent(event=StreamEventType.CLARIFY, data={"question": question})

        # Step 4: Retrieval, expansion and fallbacks
        logger.info(f"{__name__}:_plan - Step 4: Retrieving")
        await self._retrieve(run)
        if run.chunks and run.strategy != DOCUMENT:
            await self._maybe_expand(run)
        if not run.chunks:
            await self._fallback(run)
        yield StreamEvent(event=StreamEventType.RETRIEVAL, data=self._retrieval_payload(run))
        logger.info(
            f"{__name__}:_plan - Step 4 OK: strategy={run.strategy} chunks={safe_log_value(run.chunks)} mode={run.mode}"
        )

    async def _lookup_cached_answer(self, run: _AgentRun) -> bool:
        if not self._answer_cacheable(run):
            return False
        value, found = await self.cache.get(ANSWER_NAMESPACE, self._answer_identifier(run))
        if not found:
            return False
        run.cached_answer = AgentAnswer.model_validate(value)
        logger.info(f"{__name__}:_lookup_cached_answer - answer cache hit")
        return True

    def _answer_cacheable(self, run: _AgentRun) -> bool:
        return self.cache is not None and run.options.use_cache and not run.session.history

    @staticmethod
    def _answer_identifier(run: _AgentRun) -> str:
        scope = ",".join(sorted(run.session.scope)) if run.session.scope is not None else "*"
        return f"{run.options.strategy} rerank={run.options.rerank} scope={scope} {run.query}"

    async def _auxiliary(self, purpose: str, messages: list[BaseMessage]) -> str | None:
        """Auxiliary provider call; failures degrade to None."""
        try:
            result = await self.generator.generate(messages, GenerationOptions(temperature=0.0))
        except ProviderError as e:
            log_exception_with_context(logger, f"{__name__}:{purpose} - provider call failed", e)
            return None
        return result.text.strip()

    async def _resolve_follow_up(self, run: _AgentRun) -> None:
        history = format_history(run.session.history, FOLLOW_UP_HISTORY_TURNS, FOLLOW_UP_HISTORY_CHARS)
        text = await self._auxiliary(
            "_resolve_follow_up",
            FOLLOW_UP_PROMPT.format_messages(chat_history=history, question=run.query),
        )
        rewrite = (text or "").strip().strip('"').strip()
        accepted = (
            bool(rewrite)
            and len(rewrite) < self.settings.providers.follow_up_max_chars
            and normalize(rewrite) != normalize(run.query)
        )
        if accepted:
            run.effective_query = rewrite
            run.resolved_query = rewrite
        run.trace.append(FollowUpStep(original_query=run.query, resolved_query=rewrite or None, accepted=accepted))
        logger.info(f"{__name__}:_resolve_follow_up - accepted={accepted}")

    def _should_clarify(self, run: _AgentRun) -> bool:
        return (
            run.options.allow_clarify
            and run.resolved_query is None
            and run.classification is not None
            and run.classification.document_reference is None
            and self.classifier.needs_clarification(run.effective_query)
        )

    async def _clarify(self, run: _AgentRun) -> str | None:
        text = await self._auxiliary("_clarify", CLARIFY_PROMPT.format_messages(question=run.effective_query))
        if not text:
            return None
        question = " ".join(text.strip().strip('"').split()[:CLARIFY_MAX_WORDS])
        run.asked_clarifying = question
        run.trace.append(ClarifyStep(question=question))
        return question

    async def _search(self, run: _AgentRun, query: str, config: RetrievalConfig) -> RetrievalOutcome:
        if run.options.strategy == VECTOR:
            return await self.retriever.vector_search(query, config.threshold, config.top_k, scope=run.session.scope)
        return await self.retriever.retrieve(
            query,
            run.classification,
            scope=run.session.scope,
            rerank=run.options.rerank,
            config=config,
            use_cache=run.options.use_cache,
        )

    def _apply(self, run: _AgentRun, outcome: RetrievalOutcome) -> None:
        run.chunks = outcome.chunks
        run.strategy = outcome.strategy
        run.rerank_used = outcome.rerank_used
        run.retrieval_cached = outcome.cached

    async def _retrieve(self, run: _AgentRun) -> None:
        config = run.config
        reference = run.classification.document_reference
        if reference is not None:
            outcome = await self.retriever.search_document(
                run.effective_query, reference.document_id, config.threshold, config.top_k
            )
            if outcome.chunks:
                self._apply(run, outcome)
                run.trace.append(
                    RetrievalStep(
                        strategy=outcome.strategy,
                        threshold=config.threshold,
                        count=len(outcome.chunks),
                        top_score=outcome.top_score,
                        direct_reference=True,
                    )
                )
                logger.info(f"{__name__}:_retrieve - direct reference hit document={reference.document_name}")
                return

        outcome = await self._search(run, run.effective_query, config)
        self._apply(run, outcome)
        run.trace.append(
            RetrievalStep(
                strategy=outcome.strategy,
                threshold=config.threshold,
                count=len(outcome.chunks),
                top_score=outcome.top_score,
                rerank_requested=run.options.rerank and run.options.strategy != VECTOR,
                rerank_used=outcome.rerank_used,
                cached=outcome.cached,
            )
        )

    async def _maybe_expand(self, run: _AgentRun) -> None:
        """Retry once with provider-suggested terms when the best score is weak."""
        settings = self.settings.retrieval
        previous = run.top_score
        if not run.config.use_query_expansion or previous is None or previous >= settings.low_confidence_threshold:
            return

        text = await self._auxiliary("_maybe_expand", EXPANSION_PROMPT.format_messages(question=run.effective_query))
        if not text or len(text) >= EXPANSION_MAX_CHARS:
            run.trace.append(ExpansionStep(previous_top_score=previous))
            return
        expansions = [term.strip() for term in text.split(",") if term.strip()][: settings.max_expansions]
        if not expansions:
            run.trace.append(ExpansionStep(previous_top_score=previous))
            return

        relaxed = run.config.model_copy(
            update={"threshold": max(0.0, run.config.threshold - settings.expansion_relaxation)}
        )
        outcome = await self._search(run, f"{run.effective_query} {' '.join(expansions)}", relaxed)
        improved = outcome.top_score is not None and outcome.top_score > previous
        if improved:
            self._apply(run, outcome)
        run.trace.append(
            ExpansionStep(
                expansions=expansions,
                previous_top_score=previous,
                new_top_score=outcome.top_score,
                accepted=improved,
            )
        )
        logger.info(f"{__name__}:_maybe_expand - previous={previous:.3f} new={outcome.top_score} accepted={improved}")

    async def _fallback(self, run: _AgentRun) -> None:
        """Vector retry, then general knowledge, then the no-information answer."""
        threshold = self.settings.retrieval.fallback_vector_threshold
        outcome = await self.retriever.vector_search(
            run.effective_query, threshold, run.config.top_k, scope=run.session.scope
        )
        run.trace.append(FallbackStep(stage="vector", count=len(outcome.chunks), threshold=threshold))
        if outcome.chunks:
            self._apply(run, outcome)
            logger.info(f"{__name__}:_fallback - vector fallback count={len(outcome.chunks)}")
            return

        if self.general_knowledge:
            run.mode = MODE_GENERAL_KNOWLEDGE
            run.strategy = MODE_GENERAL_KNOWLEDGE
            run.trace.append(FallbackStep(stage="general_knowledge"))
            logger.info(f"{__name__}:_fallback - general knowledge")
            return

        self._no_results(run)

    def _no_results(self, run: _AgentRun) -> None:
        run.mode = MODE_NO_RESULTS
        run.strategy = "none"
        run.chunks = []
        run.trace.append(FallbackStep(stage="no_results"))
        logger.info(f"{__name__}:_fallback - no relevant information")

    # ------------------------------------------------------------------
    # Answer and persistence
    # ------------------------------------------------------------------

    def _context_chunks(self, run: _AgentRun) -> list[ScoredChunk]:
        return order_for_context(run.chunks, self.settings.retrieval.context_chunk_limit)

    def _answer_messages(self, run: _AgentRun) -> list[BaseMessage]:
        history = format_history(run.session.history)
        if run.mode == MODE_GENERAL_KNOWLEDGE:
            return GENERAL_KNOWLEDGE_PROMPT.format_messages(chat_history=history, question=run.effective_query)
        return ANSWER_PROMPT.format_messages(
            chat_history=history,
            context=format_context(self._context_chunks(run)),
            question=run.effective_query,
        )

    async def _generate(self, run: _AgentRun) -> tuple[str, int]:
        if run.mode == MODE_NO_RESULTS:
            return NO_INFORMATION_ANSWER, 0

        if run.mode == MODE_GENERAL_KNOWLEDGE:
            try:
                result = await self.generator.generate(self._answer_messages(run), self._answer_options)
            except ProviderError as e:
                log_exception_with_context(logger, f"{__name__}:_generate - general knowledge failed", e)
                self._no_results(run)
                return NO_INFORMATION_ANSWER, 0
            return result.text, result.tokens_used

        logger.info(f"{__name__}:_generate - Step 5: Generating answer chunks={len(run.chunks)}")
        result = await self.generator.generate(self._answer_messages(run), self._answer_options)
        logger.info(f"{__name__}:_generate - Step 5 OK: tokens_used={result.tokens_used}")
        return result.text, result.tokens_used

    def _confidence(self, run: _AgentRun, context: list[ScoredChunk]) -> int:
        if run.mode == MODE_GENERAL_KNOWLEDGE:
            return self.settings.confidence.general_knowledge_confidence
        if run.mode == MODE_NO_RESULTS:
            return 0
        return self.scorer.score(context)

    def _metadata(self, run: _AgentRun, tokens_used: int, cached: bool) -> AnswerMetadata:
        classification = run.classification
        return AnswerMetadata(
            strategy=run.strategy,
            rerank_used=run.rerank_used,
            rerank_model=self.retriever.rerank_model if run.rerank_used else None,
            asked_clarifying=run.asked_clarifying,
            resolved_query=run.resolved_query,
            is_general_knowledge=run.mode == MODE_GENERAL_KNOWLEDGE,
            query_type=classification.type.value if classification else None,
            threshold=run.config.threshold if run.config else None,
            cached=cached,
            thread_id=run.session.thread_id,
            tokens_used=tokens_used,
        )

    async def _finish(self, run: _AgentRun, text: str, tokens_used: int, streamed: bool) -> AgentAnswer:
        context = self._context_chunks(run) if run.mode == MODE_ANSWER else []
        ranked = run.chunks[: len(context)] if context else []
        confidence = self._confidence(run, ranked)
        sources = unique_sources(context)
        run.trace.append(
            AnswerStep(
                context_chunks=len(context),
                confidence=confidence,
                tokens_used=tokens_used,
                streamed=streamed,
            )
        )
        await self._persist(run, text, confidence, sources)

        answer = AgentAnswer(
            answer=text,
            chunks=ranked,
            confidence=confidence,
            sources=sources,
            trace=run.trace,
            metadata=self._metadata(run, tokens_used, cached=False),
        )
        if run.mode == MODE_ANSWER and self._answer_cacheable(run):
            await self.cache.set(ANSWER_NAMESPACE, self._answer_identifier(run), answer.model_dump(mode="json"))
        return answer

    async def _finish_cached(self, run: _AgentRun) -> AgentAnswer:
        cached = run.cached_answer
        run.strategy = cached.metadata.strategy
        run.rerank_used = cached.metadata.rerank_used
        run.trace.append(
            AnswerStep(context_chunks=len(cached.chunks), confidence=cached.confidence, from_cache=True)
        )
        await self._persist(run, cached.answer, cached.confidence, cached.sources)
        metadata = cached.metadata.model_copy(update={"cached": True, "thread_id": run.session.thread_id})
        return cached.model_copy(update={"trace": run.trace, "metadata": metadata})

    async def _persist(self, run: _AgentRun, text: str, confidence: int, sources: list[str]) -> None:
        """Hand the exchange to the chat store; failures are logged and traced."""
        if self.chat_store is None:
            return
        thread_id = run.session.thread_id
        step = PersistStep(thread_id=thread_id)
        run.trace.append(step)
        try:
            if thread_id is not None:
                await self.chat_store.add_message(thread_id, "user", run.query)
                await self.chat_store.add_message(
                    thread_id,
                    "assistant",
                    text,
                    confidence=confidence,
                    sources=sources,
                    trace=[s.model_dump(mode="json") for s in run.trace],
                )
            await self.chat_store.log_search_query(
                query=run.query,
                query_type=run.classification.type.value if run.classification else None,
                result_count=len(run.chunks),
                top_score=run.top_score,
                confidence=confidence,
                response_time_ms=run.elapsed_ms,
                thread_id=thread_id,
            )
        except Exception as e:
            step.stored = False
            log_exception_with_context(logger, f"{__name__}:_persist - FAILED", e, thread_id=thread_id)

    # ------------------------------------------------------------------
    # Stream payloads
    # ------------------------------------------------------------------

    @staticmethod
    def _retrieval_payload(run: _AgentRun) -> dict[str, Any]:
        return {
            "strategy": run.strategy,
            "count": len(run.chunks),
            "top_score": run.top_score,
            "rerank_used": run.rerank_used,
            "chunks": [
                {
                    "chunk_id": c.chunk_id,
                    "document_id": c.document_id,
                    "document_name": c.document_name,
                    "similarity": c.similarity,
                    "low_confidence": c.low_confidence,
                    "snippet": c.content[:SNIPPET_CHARS],
                }
                for c in run.chunks
            ],
        }

    @staticmethod
    def _done_event(answer: AgentAnswer) -> StreamEvent:
        return StreamEvent(
            event=StreamEventType.DONE,
            data={
                "confidence": answer.confidence,
                "sources": answer.sources,
                "metadata": answer.metadata.model_dump(mode="json"),
                "trace": [step.model_dump(mode="json") for step in answer.trace],
            },
        )
