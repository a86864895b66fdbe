"""
Content analysis pipeline facade.

Orchestrates the analysis stages to turn chess content into an emotional
heatmap, key moments, narration and social snippets, and fans batches out
over worker threads with per-item isolation.

The pipeline object only wires collaborators together (evaluator,
settings, voice client, result sink). Every call builds its intermediate
data from scratch, so one instance can serve concurrent requests.
"""

import asyncio
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from chesswire.analysis.content_metrics import (
    ContentMetricsAnalyzer,
    engagement_prediction,
    sentiment_score,
)
from chesswire.analysis.emotion import (
    EmotionClassifier,
    dominant_emotion,
    game_phase,
    overall_intensity,
)
from chesswire.analysis.evaluation import (
    EvaluationTracker,
    PositionEvaluator,
    evaluator_from_settings,
)
from chesswire.analysis.key_moments import KeyMomentExtractor
from chesswire.analysis.narrative import NarrativeSelector
from chesswire.analysis.notation import parse_game
from chesswire.analysis.snippets import SnippetGenerator
from chesswire.analysis.text_heuristics import TextEmotionAnalyzer
from chesswire.models.analysis import (
    AnalysisResponse,
    AnalysisResult,
    BatchEntry,
    BatchResponse,
    BatchResult,
    Emotion,
    ErrorEntry,
    HeatmapEntry,
    KeyMoment,
    NarrativeAdaptation,
)
from chesswire.models.content import AnalysisConfig, ContentItem, ContentType
from chesswire.models.game import EvaluatedPly, GameStateSnapshot, MoveQuality
from chesswire.sinks import ResultSink
from chesswire.utils.config import Settings, get_settings
from chesswire.utils.exceptions import (
    AnalysisCancelledError,
    AnalysisTimeoutError,
    CapacityError,
    ChessWireError,
    ClassificationError,
    ConfigurationError,
    ValidationError,
)
from chesswire.utils.logger import get_contextual_logger, get_logger
from chesswire.voice_client import VoiceRenderingClient

logger = get_logger("pipeline")

ItemLike = Union[ContentItem, Mapping[str, Any]]
ConfigLike = Union[AnalysisConfig, Mapping[str, Any], None]


def _first_error_field(exc: PydanticValidationError, prefix: str) -> tuple[str, Any]:
    """Dotted field name and offending input of the first pydantic error."""
    error = exc.errors()[0]
    loc = ".".join(str(part) for part in error["loc"])
    field = f"{prefix}.{loc}" if loc else prefix
    return field, error.get("input")


def coerce_config(config: ConfigLike) -> AnalysisConfig:
    """
    Turn a config mapping (camelCase or snake_case) into an AnalysisConfig.

    Raises:
        ValidationError: On unknown fields or invalid values; the field is
                         reported as 'config.<name>'
    """
    if config is None:
        return AnalysisConfig()
    if isinstance(config, AnalysisConfig):
        return config
    if not isinstance(config, Mapping):
        raise ValidationError(
            "Analysis configuration must be a mapping",
            field="config",
            value=type(config).__name__,
        )

    try:
        return AnalysisConfig.model_validate(dict(config))
    except PydanticValidationError as e:
        field, value = _first_error_field(e, "config")
        raise ValidationError(
            f"Invalid analysis configuration: {e.errors()[0]['msg']}",
            field=field,
            value=value,
            constraints=[err["msg"] for err in e.errors()],
            cause=e,
        ) from e


class ContentAnalysisPipeline:
    """
    Orchestrates content analysis for single items and batches.

    Notation games run parse, evaluate and classify; articles and
    transcripts run the keyword heuristics. Both paths then share key-moment
    extraction, narration, snippet generation and content scoring, each
    gated by the request's AnalysisConfig.
    """

    def __init__(
        self,
        evaluator: Optional[PositionEvaluator] = None,
        settings: Optional[Settings] = None,
        voice_client: Optional[VoiceRenderingClient] = None,
        result_sink: Optional[ResultSink] = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            evaluator: Position evaluator; built from settings when omitted
            settings: Application settings. Defaults to get_settings().
            voice_client: Receives narration hand-offs. Built from settings
                          when omitted and voice rendering is enabled.
            result_sink: Receives every successful AnalysisResult when set

        Raises:
            ConfigurationError: Voice rendering is enabled but its URL or
                                API key is missing
        """
        self.settings = settings or get_settings()
        self.evaluator = evaluator or evaluator_from_settings(self.settings)
        self.voice_client = voice_client or self._voice_client_from_settings()
        self.result_sink = result_sink

        # Stateless stage components
        self._tracker = EvaluationTracker(self.evaluator)
        self._classifier = EmotionClassifier()
        self._text_analyzer = TextEmotionAnalyzer()
        self._extractor = KeyMomentExtractor()
        self._metrics = ContentMetricsAnalyzer()

    def _voice_client_from_settings(self) -> Optional[VoiceRenderingClient]:
        voice = self.settings.voice
        if not voice.enabled:
            return None

        missing = [key for key in self.settings.validate_required() if key.startswith("VOICE_")]
        if missing:
            raise ConfigurationError(
                f"Voice rendering is enabled but not configured: {', '.join(missing)}",
                missing_keys=missing,
            )
        logger.info("Voice hand-off enabled (%s)", voice.api_url)
        return VoiceRenderingClient(
            api_key=voice.api_key,
            api_url=voice.api_url,
            timeout=voice.timeout,
            max_workers=voice.max_workers,
        )

    def analyze(self, item: ItemLike, config: ConfigLike = None) -> AnalysisResult:
        """
        Analyze a single content item.

        Args:
            item: ContentItem or a {'content', 'type'} mapping
            config: AnalysisConfig or mapping; defaults apply when None

        Returns:
            AnalysisResult for the item

        Raises:
            ValidationError: Invalid item or config, checked before any stage
            ParseError: Malformed notation
            ClassificationError: Internal invariant violated during analysis
        """
        result = self._run_analysis(item, config)
        self._deliver(result)
        return result

    def _run_analysis(self, item: ItemLike, config: ConfigLike) -> AnalysisResult:
        """Run the stages for one item without touching sink or voice client."""
        start = time.perf_counter()
        config = coerce_config(config)
        item = self._coerce_item(item)
        self._validate_item(item)

        item_logger = get_contextual_logger("pipeline", content_type=item.type.value)
        item_logger.info("Analyzing %d bytes", item.byte_length)

        if item.type.is_notation:
            fields = self._analyze_notation(item, config)
        else:
            fields = self._analyze_text(item, config)

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        result = AnalysisResult(
            content_type=item.type,
            processing_time_ms=elapsed_ms,
            **fields,
        )
        item_logger.info(
            "Analysis complete in %d ms (ply_count=%s, key_moments=%s)",
            elapsed_ms,
            result.ply_count,
            len(result.key_moments) if result.key_moments is not None else None,
        )
        return result

    def _deliver(self, result: AnalysisResult) -> None:
        self._hand_off_narration(result.narrative_adaptations)
        self._write_result(result)

    def analyze_batch(
        self,
        items: Sequence[ItemLike],
        config: ConfigLike = None,
    ) -> BatchResult:
        """
        Analyze a batch synchronously.

        Runs analyze_batch_async on a fresh event loop, so it must not be
        called from inside a running loop.
        """
        return asyncio.run(self.analyze_batch_async(items, config))

    async def analyze_batch_async(
        self,
        items: Sequence[ItemLike],
        config: ConfigLike = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchResult:
        """
        Analyze a batch with bounded concurrency and per-item isolation.

        Args:
            items: Content items (or mappings), at most max_batch_size
            config: Shared analysis configuration
            cancel_event: When set, items not yet started are reported as
                          cancelled; in-flight items finish normally

        Returns:
            BatchResult with one entry per item, in input order

        Raises:
            ValidationError: Empty batch or invalid config
            CapacityError: More items than max_batch_size
        """
        config = coerce_config(config)
        items = list(items or [])
        if not items:
            raise ValidationError(
                "Batch must contain at least one item",
                field="items",
                constraints=["min_items=1"],
            )

        pipeline_settings = self.settings.pipeline
        if len(items) > pipeline_settings.max_batch_size:
            raise CapacityError(
                f"Batch size limited to {pipeline_settings.max_batch_size} items per request",
                limit=pipeline_settings.max_batch_size,
                received=len(items),
            )

        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(pipeline_settings.max_concurrency)
        timeout = pipeline_settings.item_timeout_seconds
        # Owned per batch and never joined, so a timed-out worker cannot hold up the
        # caller. One thread per item keeps a stuck worker from starving the queue.
        executor = ThreadPoolExecutor(
            max_workers=len(items),
            thread_name_prefix="chesswire-batch",
        )
        logger.info(
            "Starting batch of %d items (concurrency=%d, timeout=%.1fs)",
            len(items),
            pipeline_settings.max_concurrency,
            timeout,
        )

        async def run_item(index: int, item: ItemLike) -> BatchEntry:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return self._error_entry(index, AnalysisCancelledError(item_index=index))
                try:
                    result = await asyncio.wait_for(
                        loop.run_in_executor(executor, self._run_analysis, item, config),
                        timeout,
                    )
                except asyncio.TimeoutError:
                    logger.warning("Batch item %d timed out after %.1fs", index, timeout)
                    return self._error_entry(
                        index,
                        AnalysisTimeoutError(timeout_seconds=timeout, item_index=index),
                    )
                except ChessWireError as e:
                    logger.warning("Batch item %d failed: %s", index, e)
                    return self._error_entry(index, e)
                except Exception as e:
                    logger.exception("Unexpected failure in batch item %d", index)
                    return self._error_entry(
                        index,
                        ClassificationError(
                            f"Unexpected error during analysis: {e}",
                            stage="pipeline",
                            cause=e,
                        ),
                    )
                # Only results that beat the timeout are persisted and narrated
                self._deliver(result)
                return BatchEntry(index=index, result=result)

        try:
            entries = await asyncio.gather(
                *(run_item(index, item) for index, item in enumerate(items))
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        batch = BatchResult(entries=list(entries))
        logger.info("Batch finished: %d succeeded, %d failed", batch.succeeded, batch.failed)
        return batch

    @staticmethod
    def _error_entry(index: int, exc: Exception) -> BatchEntry:
        return BatchEntry(index=index, error=ErrorEntry.from_exception(exc))

    @staticmethod
    def _coerce_item(item: ItemLike) -> ContentItem:
        if isinstance(item, ContentItem):
            return item
        if not isinstance(item, Mapping):
            raise ValidationError(
                "Content item must be a mapping with 'content' and 'type'",
                field="item",
                value=type(item).__name__,
            )
        try:
            return ContentItem.model_validate(dict(item))
        except PydanticValidationError as e:
            field, value = _first_error_field(e, "item")
            raise ValidationError(
                f"Invalid content item: {e.errors()[0]['msg']}",
                field=field,
                value=value,
                constraints=[
                    "content: non-empty text",
                    f"type: one of {[t.value for t in ContentType]}",
                ],
                cause=e,
            ) from e

    def _validate_item(self, item: ContentItem) -> None:
        """Emptiness and size limits, enforced here and nowhere else."""
        if not item.content.strip():
            raise ValidationError(
                "Content must not be empty",
                field="content",
                constraints=["non-empty"],
            )

        limit = self.settings.pipeline.max_content_bytes
        size = item.byte_length
        if size > limit:
            raise ValidationError(
                f"Content is {size} bytes, limit is {limit}",
                field="content",
                value=f"{size} bytes",
                constraints=[f"max_bytes={limit}"],
            )

    def _analyze_notation(self, item: ContentItem, config: AnalysisConfig) -> dict[str, Any]:
        game = parse_game(item.content)
        evaluated = self._tracker.evaluate(game.plies)
        last = evaluated[-1]

        fields: dict[str, Any] = {
            "ply_count": len(evaluated),
            "game_phase": game_phase(last.move_number, last.piece_count),
        }

        heatmap = None
        if config.include_emotional_analysis:
            heatmap = self._classifier.classify(evaluated)
            fields.update(self._summarize_heatmap(heatmap))
        self._score_content(item, config, fields)

        key_moments = self._extract_key_moments(heatmap, config, fields)

        if config.generate_narrative_adaptations:
            fields["narrative_adaptations"] = self._narrate_game(evaluated, key_moments, config)

        self._generate_snippets(key_moments, config, fields)
        return fields

    def _analyze_text(self, item: ContentItem, config: AnalysisConfig) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "ply_count": len(self._text_analyzer.segment(item.content, item.type)),
        }

        heatmap = None
        if config.include_emotional_analysis:
            heatmap = self._text_analyzer.build_heatmap(item.content, item.type)
            fields.update(self._summarize_heatmap(heatmap))
        self._score_content(item, config, fields)

        key_moments = self._extract_key_moments(heatmap, config, fields)

        if config.generate_narrative_adaptations:
            fields["narrative_adaptations"] = self._narrate_text(key_moments, config)

        self._generate_snippets(key_moments, config, fields)
        return fields

    @staticmethod
    def _summarize_heatmap(heatmap: list[HeatmapEntry]) -> dict[str, Any]:
        return {
            "heatmap": heatmap,
            "dominant_emotion": dominant_emotion(heatmap),
            "overall_intensity": overall_intensity(heatmap),
            "sentiment_score": sentiment_score(heatmap),
            "engagement_prediction": engagement_prediction(heatmap),
        }

    def _score_content(
        self,
        item: ContentItem,
        config: AnalysisConfig,
        fields: dict[str, Any],
    ) -> None:
        if config.include_quality_scoring:
            fields["quality_score"] = self._metrics.quality_score(item.content, item.type)
            fields["metadata"] = self._metrics.metadata(item.content, item.type)
        if config.include_recommendations:
            fields["recommendations"] = self._metrics.recommendations(
                item.content, item.type, config
            )

    def _extract_key_moments(
        self,
        heatmap: Optional[list[HeatmapEntry]],
        config: AnalysisConfig,
        fields: dict[str, Any],
    ) -> Optional[list[KeyMoment]]:
        # Key moments need a heatmap
        if not config.extract_key_moments or heatmap is None:
            return None
        key_moments = self._extractor.extract(
            heatmap,
            max_moments=config.max_key_moments,
            min_gap=config.min_moment_gap,
        )
        fields["key_moments"] = key_moments
        return key_moments

    @staticmethod
    def _generate_snippets(
        key_moments: Optional[list[KeyMoment]],
        config: AnalysisConfig,
        fields: dict[str, Any],
    ) -> None:
        # Snippets need key moments
        if not config.generate_social_snippets or key_moments is None:
            return
        generator = SnippetGenerator(char_budget=config.snippet_char_budget)
        fields["social_snippets"] = generator.summarize(key_moments, config.target_audience)

    @staticmethod
    def _narrate_game(
        evaluated: list[EvaluatedPly],
        key_moments: Optional[list[KeyMoment]],
        config: AnalysisConfig,
    ) -> list[NarrativeAdaptation]:
        selector = NarrativeSelector(config.voice_mode, config.target_audience)
        by_index = {ply.index: ply for ply in evaluated}

        if key_moments:
            plies = [by_index[moment.ply_index] for moment in key_moments]
        else:
            plies = [evaluated[-1]]
        return selector.adapt([(ply.index, GameStateSnapshot.from_ply(ply)) for ply in plies])

    @staticmethod
    def _narrate_text(
        key_moments: Optional[list[KeyMoment]],
        config: AnalysisConfig,
    ) -> list[NarrativeAdaptation]:
        selector = NarrativeSelector(config.voice_mode, config.target_audience)
        if not key_moments:
            return selector.adapt([(None, GameStateSnapshot())])

        # Prose carries no board; only an error-themed passage changes the rule
        decision_points = []
        for moment in key_moments:
            quality = MoveQuality.BLUNDER if moment.emotion is Emotion.BLUNDER else None
            decision_points.append(
                (moment.ply_index, GameStateSnapshot(last_move_quality=quality))
            )
        return selector.adapt(decision_points)

    def _hand_off_narration(
        self,
        adaptations: Optional[list[NarrativeAdaptation]],
    ) -> None:
        """Queue narration for rendering without waiting for audio."""
        if self.voice_client is None or not adaptations:
            return
        for adaptation in adaptations:
            try:
                self.voice_client.dispatch(adaptation)
            except RuntimeError as e:
                logger.warning("Could not hand off narration for ply %s: %s", adaptation.ply_index, e)

    def _write_result(self, result: AnalysisResult) -> None:
        if self.result_sink is None:
            return
        try:
            self.result_sink.write(result)
        except Exception as e:
            logger.error("Failed to persist analysis result: %s", e, exc_info=True)


def analyze_content(
    content: str,
    content_type: Union[ContentType, str],
    config: ConfigLike = None,
    pipeline: Optional[ContentAnalysisPipeline] = None,
) -> AnalysisResponse:
    """
    Analyze one piece of content and wrap the result for the wire.

    Args:
        content: Notation, article text or transcript
        content_type: 'notation' (or 'pgn'), 'article', 'video', 'audio' (or 'voice')
        config: Analysis configuration
        pipeline: Pipeline to use; a default one is built when omitted

    Returns:
        AnalysisResponse; serialize with model_dump(by_alias=True)

    Raises:
        ChessWireError: Validation, parse and analysis errors propagate
    """
    pipeline = pipeline or ContentAnalysisPipeline()
    start = time.perf_counter()
    result = pipeline.analyze({"content": content, "type": content_type}, config)
    return AnalysisResponse(
        success=True,
        result=result,
        processing_time_ms=int((time.perf_counter() - start) * 1000),
    )


def batch_analyze(
    items: Sequence[ItemLike],
    config: ConfigLike = None,
    pipeline: Optional[ContentAnalysisPipeline] = None,
) -> BatchResponse:
    """
    Analyze a batch and wrap the per-item outcomes for the wire.

    Args:
        items: Content items or {'content', 'type'} mappings
        config: Shared analysis configuration
        pipeline: Pipeline to use; a default one is built when omitted

    Returns:
        BatchResponse; success means the batch was accepted, per-item
        failures are reported in its entries

    Raises:
        ValidationError: Empty batch or invalid config
        CapacityError: Too many items
    """
    pipeline = pipeline or ContentAnalysisPipeline()
    start = time.perf_counter()
    batch = pipeline.analyze_batch(items, config)
    return BatchResponse(
        success=True,
        results=batch.entries,
        total_processed=batch.succeeded,
        total_failed=batch.failed,
        processing_time=int((time.perf_counter() - start) * 1000),
    )
