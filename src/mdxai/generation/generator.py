"""Recursive outline generator.

A request either goes straight to document generation or, when ``recursive`` is set with a
positive depth, first asks the backend for a flat outline and then expands the whole outline in
one merged generation call. Either way the final text is passed through the frontmatter
synthesizer before it is returned.
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

from pydantic import TypeAdapter, ValidationError

from mdxai.config import Settings
from mdxai.core.concurrency import gather_limited
from mdxai.errors import (
    ConfigurationError,
    GenerationError,
    GenerationTimeoutError,
    MDXAIError,
    ParsingError,
    describe_validation_error,
    format_error,
)
from mdxai.events import EventCallback, EventEmitter, GenerationStage
from mdxai.llm.protocol import Backend
from mdxai.llm.streaming import ChunkCallback, accumulate_stream
from mdxai.logging import get_logger, request_context, set_stage
from mdxai.mdx.frontmatter import parse, stringify, synthesize
from mdxai.models.document import Document
from mdxai.models.generation import GenerationRequest, GenerationResult
from mdxai.models.outline import OutlineItem
from mdxai.prompts.generator import MDX_SYSTEM_PROMPT, build_generation_prompt
from mdxai.prompts.outline import OUTLINE_SYSTEM_PROMPT, build_expansion_prompt, build_outline_prompt
from mdxai.utils.ids import new_request_id
from mdxai.utils.json_text import MDX_FENCE_LANGUAGES, loads_json, strip_code_fence

logger = get_logger(__name__)

_OUTLINE_ADAPTER: TypeAdapter[list[OutlineItem]] = TypeAdapter(list[OutlineItem])

DIRECT_PROGRESS_MESSAGE = "Generated MDX content\n"
OUTLINE_PROGRESS_MESSAGE = "Generated outline and MDX content\n"


class MDXGenerator:
    """Generate MDX documents with linked-data frontmatter."""

    def __init__(self, settings: Settings, backend: Backend) -> None:
        self._settings = settings
        self._backend = backend

    def build_request(
        self,
        prompt: str,
        *,
        type: str | None = None,  # noqa: A002
        model: str | None = None,
        components: Sequence[str] = (),
        recursive: bool = False,
        depth: int = 1,
    ) -> GenerationRequest:
        """Create a request, filling type and model from settings.

        Raises:
            ConfigurationError: If the request is invalid, e.g. an empty prompt.
        """

        try:
            return GenerationRequest(
                prompt=prompt,
                type=type or self._settings.default_type,
                model=model or self._settings.default_model,
                components=tuple(components),
                recursive=recursive,
                depth=depth,
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid generation request: {describe_validation_error(exc)}") from exc

    def generate(
        self,
        request: GenerationRequest,
        *,
        on_chunk: ChunkCallback | None = None,
        on_event: EventCallback | None = None,
    ) -> GenerationResult:
        """Run one generation request to completion.

        Args:
            request: What to generate.
            on_chunk: When given, the document text is streamed and each chunk is passed here.
            on_event: Called with a :class:`~mdxai.events.GenerationEvent` at each transition.

        Returns:
            The serialized document, its parsed form and the outline when one was used.

        Raises:
            GenerationError: The backend failed or returned empty text.
            GenerationTimeoutError: A streamed step exceeded ``generation_timeout_s``; the
                partial text (and partial result, when any text arrived) is attached.
            ParsingError: The outline reply was not a JSON list of sections.
        """

        emitter = EventEmitter(new_request_id(), on_event)
        with request_context(request_id=emitter.request_id, stage="start"):
            logger.info(
                "Generation started",
                extra={"type": request.type, "model": request.model, "recursive": request.wants_outline},
            )
            try:
                result = self._run(request, emitter, on_chunk)
            except MDXAIError as e:
                emitter.emit(GenerationStage.FAILED, format_error(e), error_kind=type(e).__name__)
                logger.warning("Generation failed", extra={"error": format_error(e)})
                raise
            logger.info("Generation finished", extra={"chars": len(result.content)})
            return result

    async def generate_async(self, request: GenerationRequest, **kwargs: Any) -> GenerationResult:
        """Async variant of :meth:`generate`; runs in a worker thread."""

        return await asyncio.to_thread(self.generate, request, **kwargs)

    async def generate_batch(
        self,
        requests: Sequence[GenerationRequest],
        *,
        concurrency: int | None = None,
        on_event: EventCallback | None = None,
    ) -> list[GenerationResult | BaseException]:
        """Run independent requests concurrently behind one admission gate.

        Returns:
            One entry per request, in request order: the result or the exception it raised.
        """

        limit = concurrency or self._settings.concurrency
        logger.info("Batch generation", extra={"requests": len(requests), "concurrency": limit})
        return await gather_limited(
            [lambda r=r: self.generate_async(r, on_event=on_event) for r in requests],
            max_concurrent=limit,
        )

    def generate_outline(self, request: GenerationRequest) -> list[OutlineItem]:
        """Ask the backend for a flat outline of the requested content.

        Raises:
            GenerationError: The backend returned empty text.
            ParsingError: The reply is not a JSON list of ``{title, description}`` objects.
        """

        set_stage("outline")
        reply = self._backend.generate_text(
            build_outline_prompt(request.prompt, request.type, request.depth),
            OUTLINE_SYSTEM_PROMPT,
            model=request.model,
            temperature=self._settings.temperature,
            max_tokens=self._settings.outline_max_tokens,
        )
        if not reply.text or not reply.text.strip():
            raise GenerationError("Failed to generate outline: backend returned empty text")

        data = loads_json(reply.text, what="outline")
        if not isinstance(data, list):
            raise ParsingError(f"Outline must be a JSON array, got {type(data).__name__}")
        try:
            outline = _OUTLINE_ADAPTER.validate_python(data)
        except ValidationError as e:
            raise ParsingError(f"Outline entries must be objects with a title: {e}") from e
        logger.info("Outline generated", extra={"sections": len(outline)})
        return outline

    def _run(
        self,
        request: GenerationRequest,
        emitter: EventEmitter,
        on_chunk: ChunkCallback | None,
    ) -> GenerationResult:
        if not request.wants_outline:
            return self._generate_direct(request, emitter, on_chunk, topic=request.prompt)

        emitter.emit(GenerationStage.OUTLINE_REQUESTED, "Generating outline", depth=request.depth)
        outline = self.generate_outline(request)
        emitter.emit(
            GenerationStage.OUTLINE_READY,
            f"Outline has {len(outline)} sections",
            titles=[item.title for item in outline],
        )
        if not outline:
            logger.warning("Outline is empty; generating directly from the prompt")
            result = self._generate_direct(request.direct(request.prompt), emitter, on_chunk, topic=request.prompt)
        else:
            # One merged expansion for the whole outline; the sub-request is never recursive.
            expansion = request.direct(build_expansion_prompt(outline))
            result = self._generate_direct(expansion, emitter, on_chunk, topic=request.prompt)
        return result.model_copy(update={"outline": outline, "progress_message": OUTLINE_PROGRESS_MESSAGE})

    def _generate_direct(
        self,
        request: GenerationRequest,
        emitter: EventEmitter,
        on_chunk: ChunkCallback | None,
        *,
        topic: str,
    ) -> GenerationResult:
        set_stage("generate")
        emitter.emit(GenerationStage.GENERATION_STARTED, "Generating MDX content", streaming=on_chunk is not None)
        prompt = build_generation_prompt(request.prompt, request.type, request.components)

        if on_chunk is not None:
            chunks = self._backend.stream_text(
                prompt,
                MDX_SYSTEM_PROMPT,
                model=request.model,
                temperature=self._settings.temperature,
                max_tokens=self._settings.document_max_tokens,
            )
            try:
                text = accumulate_stream(chunks, timeout_s=self._settings.generation_timeout_s, on_chunk=on_chunk)
            except GenerationTimeoutError as e:
                partial = strip_code_fence(e.partial, languages=MDX_FENCE_LANGUAGES)
                if partial:
                    e.result = self._synthesize(request, partial, topic=topic)
                raise
        else:
            text = self._backend.generate_text(
                prompt,
                MDX_SYSTEM_PROMPT,
                model=request.model,
                temperature=self._settings.temperature,
                max_tokens=self._settings.document_max_tokens,
            ).text

        text = strip_code_fence(text or "", languages=MDX_FENCE_LANGUAGES)
        if not text:
            raise GenerationError("Failed to generate MDX content: backend returned empty text")
        emitter.emit(GenerationStage.GENERATION_DONE, "MDX content generated", chars=len(text))

        set_stage("synthesize")
        result = self._synthesize(request, text, topic=topic)
        emitter.emit(GenerationStage.SYNTHESIZED, "Frontmatter synthesized", title=result.document.title)
        return result

    def _synthesize(self, request: GenerationRequest, text: str, *, topic: str) -> GenerationResult:
        try:
            document = parse(text)
        except ParsingError:
            logger.debug("Generated text has no frontmatter; synthesizing from scratch")
            document = Document()

        synthesize(
            document,
            type=request.type,
            model=request.model,
            source_text=text,
            prompt=topic,
            context=self._settings.context_url,
            schema_url=self._settings.schema_url,
            generator=self._settings.generator_name,
            version=self._settings.generator_version,
        )
        return GenerationResult(
            content=stringify(document),
            document=document,
            progress_message=DIRECT_PROGRESS_MESSAGE,
        )
