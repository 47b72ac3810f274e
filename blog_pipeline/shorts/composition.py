"""Composition builder for kinetic-typography shorts.

Pipeline: text -> script segments -> voice with word timestamps -> composition
-> render props. Each stage returns an Ok/Failure result so the caller decides
whether to fall back or abort.
"""

import math
import os
import time
from dataclasses import dataclass

from loguru import logger

from blog_pipeline.common.errors import Failure, Ok, PipelineError, StageResult
from blog_pipeline.common.tools import write_json_model
from blog_pipeline.core.configs.config import settings
from blog_pipeline.core.tools.elevenlabs_client import ElevenLabsConfig
from blog_pipeline.core.tools.openai_client import OpenAIClient, llm_client_from_settings
from blog_pipeline.shorts.models import (
    DEFAULT_THEME,
    VIDEO_FORMATS,
    RenderProps,
    VideoComposition,
    VideoInput,
    VideoLanguage,
    VideoScript,
    VideoTheme,
    VoiceSynthesisResult,
)
from blog_pipeline.shorts.pronunciation import PronunciationTable
from blog_pipeline.shorts.script_generator import ScriptGenerator, generate_simple_script
from blog_pipeline.shorts.voice import VoiceSynthesizer, save_audio_to_file

DEFAULT_FPS = 30


def compute_duration_in_frames(duration_seconds: float, fps: int) -> int:
    return math.ceil(duration_seconds * fps)


@dataclass(frozen=True)
class CompositionArtifacts:
    """Files written for the render step."""

    audio_path: str
    composition_path: str
    props_path: str


class VideoPipeline:
    """Build a VideoComposition from text.

    Example:
        >>> pipeline = VideoPipeline(
        ...     script_generator=ScriptGenerator(llm_client),
        ...     synthesizer=VoiceSynthesizer(ElevenLabsConfig.from_settings()),
        ... )
        >>> composition = await pipeline.prepare_composition(
        ...     VideoInput(text="Context engineering matters.", language="en", format="shorts"),
        ...     fallback_to_rules=True,
        ... )
        >>> composition.dimensions.height
        1920
    """

    def __init__(
        self,
        script_generator: ScriptGenerator | None,
        synthesizer: VoiceSynthesizer,
        fps: int = DEFAULT_FPS,
    ) -> None:
        """Initialize the pipeline.

        Args:
            script_generator: Model-assisted segmenter. None means rule-based only.
            synthesizer: Voice synthesizer
            fps: Frame rate of the composition
        """
        self.script_generator = script_generator
        self.synthesizer = synthesizer
        self.fps = fps

    @classmethod
    def from_settings(cls, language: VideoLanguage = "ru", use_model: bool = True) -> "VideoPipeline":
        """Build a pipeline from settings.

        Raises:
            ConfigurationError: If ElevenLabs (or, with use_model, OpenAI) credentials are missing
        """
        synthesizer = VoiceSynthesizer(
            ElevenLabsConfig.from_settings(),
            pronunciations=PronunciationTable.for_language(language),
        )
        script_generator = None
        if use_model:
            script_generator = ScriptGenerator(llm_client_from_settings(model_name=settings.script_model_name))
        return cls(script_generator, synthesizer, fps=settings.video_fps)

    async def run_segmentation(self, video_input: VideoInput, use_model: bool = True) -> StageResult[VideoScript]:
        if not use_model or self.script_generator is None:
            return Ok(generate_simple_script(video_input.text, video_input.language))
        try:
            return Ok(await self.script_generator.generate_script(video_input.text, video_input.language))
        except PipelineError as e:
            logger.error(f"Script segmentation failed: {e}")
            return Failure("segmentation", e)

    async def run_synthesis(self, script: VideoScript) -> StageResult[VoiceSynthesisResult]:
        try:
            return Ok(await self.synthesizer.synthesize(script.full_text))
        except PipelineError as e:
            logger.error(f"Voice synthesis failed: {e}")
            return Failure("synthesis", e)

    def build_composition(
        self,
        video_input: VideoInput,
        script: VideoScript,
        voice: VoiceSynthesisResult,
    ) -> VideoComposition:
        return VideoComposition(
            script=script,
            voice=voice,
            format=video_input.format,
            dimensions=VIDEO_FORMATS[video_input.format],
            fps=self.fps,
            duration_in_frames=compute_duration_in_frames(voice.duration_seconds, self.fps),
        )

    async def prepare_composition(self, video_input: VideoInput, fallback_to_rules: bool = False) -> VideoComposition:
        """Run segmentation and synthesis, then assemble the composition.

        Args:
            video_input: Text, language and format
            fallback_to_rules: If the model segmentation fails, use the rule-based
                               segmenter instead of aborting

        Returns:
            VideoComposition

        Raises:
            PipelineError: The error of the first stage that failed
        """
        logger.info("=" * 80)
        logger.info(f"Preparing {video_input.format} composition ({video_input.language})")
        logger.info("=" * 80)

        script_result = await self.run_segmentation(video_input)
        if not script_result.is_ok and fallback_to_rules:
            logger.warning("Falling back to rule-based segmentation")
            script_result = await self.run_segmentation(video_input, use_model=False)
        script = script_result.unwrap()
        logger.info(f"✓ Script generated ({len(script.segments)} segments)")

        voice = (await self.run_synthesis(script)).unwrap()
        logger.info(f"✓ Voice synthesized ({voice.duration_seconds:.1f}s, {len(voice.word_timestamps)} words)")

        composition = self.build_composition(video_input, script, voice)
        logger.info(
            f"✓ Composition: {composition.duration_in_frames} frames @ {composition.fps}fps, "
            f"{composition.dimensions.width}x{composition.dimensions.height}"
        )
        return composition


async def prepare_composition(
    video_input: VideoInput,
    voice_config: ElevenLabsConfig,
    llm_client: OpenAIClient | None = None,
    fps: int = DEFAULT_FPS,
    pronunciations: PronunciationTable | None = None,
) -> VideoComposition:
    """Build a composition with model segmentation (or rule-based when no LLM client is given).

    Raises:
        ConfigurationError: If ElevenLabs credentials are missing (before any network call)
        ParseError: If the model segmentation response is malformed
        ExternalServiceError: If a remote API fails
    """
    if pronunciations is None:
        pronunciations = PronunciationTable.for_language(video_input.language)
    synthesizer = VoiceSynthesizer(voice_config, pronunciations=pronunciations)
    script_generator = ScriptGenerator(llm_client) if llm_client is not None else None
    pipeline = VideoPipeline(script_generator, synthesizer, fps=fps)
    return await pipeline.prepare_composition(video_input)


def build_render_props(
    composition: VideoComposition,
    audio_src: str | None = None,
    theme: VideoTheme = DEFAULT_THEME,
) -> RenderProps:
    return RenderProps(
        words=composition.voice.word_timestamps,
        key_phrases=composition.script.key_phrases,
        theme=theme,
        audio_src=audio_src,
    )


def write_composition_outputs(
    composition: VideoComposition,
    output_dir: str,
    stem: str | None = None,
    theme: VideoTheme = DEFAULT_THEME,
) -> CompositionArtifacts:
    """Write audio, composition JSON and renderer props to output_dir.

    Args:
        composition: Composition to persist
        output_dir: Target directory (created if missing)
        stem: File name stem. Defaults to a millisecond timestamp.
        theme: Theme written into the render props

    Returns:
        CompositionArtifacts with the three file paths
    """
    stem = stem or str(int(time.time() * 1000))
    os.makedirs(output_dir, exist_ok=True)

    audio_path = save_audio_to_file(composition.voice.audio_base64, os.path.join(output_dir, f"audio-{stem}.mp3"))
    composition_path = write_json_model(composition, os.path.join(output_dir, f"data-{stem}.json"))
    # Renderer resolves relative audio paths against its public directory
    props = build_render_props(composition, audio_src=os.path.basename(audio_path), theme=theme)
    props_path = write_json_model(props, os.path.join(output_dir, f"props-{stem}.json"))

    return CompositionArtifacts(audio_path=audio_path, composition_path=composition_path, props_path=props_path)
