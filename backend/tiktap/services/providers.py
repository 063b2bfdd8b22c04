"""Wires the four provider adapters together from settings.

The orchestrator only ever sees a Providers bundle, so tests and
alternative deployments can swap any adapter without touching it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from tiktap.config import (
    AssemblyStrategy,
    FootageQuerySource,
    Settings,
    secret_value,
    settings as app_settings,
)
from tiktap.services.assembly import FFmpegAssembler, ShotstackAssembler, VideoAssembler
from tiktap.services.file_manager import FileManager
from tiktap.services.footage import FootageSource, PexelsFootageSource
from tiktap.services.script import ScriptGenerator, get_script_generator
from tiktap.services.voice import ElevenLabsVoiceSynthesizer, VoiceSynthesizer

logger = logging.getLogger(__name__)


@dataclass
class Providers:
    """The capability adapters one pipeline run needs."""

    script: ScriptGenerator
    voice: VoiceSynthesizer
    footage: FootageSource
    assembler: VideoAssembler
    file_manager: FileManager
    footage_query_source: FootageQuerySource = FootageQuerySource.TEMPLATE

    @property
    def strategy(self) -> AssemblyStrategy:
        return self.assembler.strategy

    async def aclose(self) -> None:
        for adapter in (self.script, self.voice, self.footage, self.assembler):
            await adapter.aclose()


def build_providers(
    config: Optional[Settings] = None,
    strategy: Optional[AssemblyStrategy] = None,
) -> Providers:
    """Construct production adapters from settings.

    Args:
        config: Settings to read; defaults to the module singleton.
        strategy: Override pipeline.assembly_strategy (e.g. from the CLI).
    """
    config = config or app_settings
    providers_cfg = config.providers
    pipeline_cfg = config.pipeline
    strategy = AssemblyStrategy(strategy or pipeline_cfg.assembly_strategy)
    timeout = httpx.Timeout(providers_cfg.request_timeout, connect=providers_cfg.connect_timeout)

    file_manager = FileManager(config.storage.tmp_dir)

    script = get_script_generator(
        providers_cfg.script_model,
        openai_api_key=secret_value(config.openai_api_key),
        openai_base_url=providers_cfg.openai_base_url,
        ollama_base_url=providers_cfg.ollama_base_url,
        max_tokens=providers_cfg.script_max_tokens,
    )
    voice = ElevenLabsVoiceSynthesizer(
        api_key=secret_value(config.elevenlabs_api_key),
        model_id=providers_cfg.voice_model,
        base_url=providers_cfg.elevenlabs_base_url,
        stability=providers_cfg.voice_stability,
        similarity_boost=providers_cfg.voice_similarity_boost,
        timeout=timeout,
    )
    footage = PexelsFootageSource(
        api_key=secret_value(config.pexels_api_key),
        file_manager=file_manager,
        base_url=providers_cfg.pexels_base_url,
        per_page=providers_cfg.footage_per_page,
        orientation=providers_cfg.footage_orientation,
        selection=pipeline_cfg.footage_selection,
        timeout=timeout,
    )

    assembler: VideoAssembler
    if strategy == AssemblyStrategy.REMOTE:
        assembler = ShotstackAssembler(
            api_key=secret_value(config.shotstack_api_key),
            base_url=providers_cfg.shotstack_base_url,
            poll_interval=pipeline_cfg.render_poll_interval,
            poll_max=pipeline_cfg.render_poll_max,
            max_clips=pipeline_cfg.render_max_clips,
            clip_length=pipeline_cfg.render_clip_length,
            width=pipeline_cfg.output_width,
            height=pipeline_cfg.output_height,
            public_base_url=config.server.public_base_url,
            timeout=timeout,
        )
    else:
        assembler = FFmpegAssembler(
            file_manager=file_manager,
            default_duration=pipeline_cfg.default_audio_duration,
        )

    logger.info(
        f"Providers ready: script={providers_cfg.script_model} "
        f"assembly={strategy.value} footage_selection={pipeline_cfg.footage_selection.value}"
    )
    return Providers(
        script=script,
        voice=voice,
        footage=footage,
        assembler=assembler,
        file_manager=file_manager,
        footage_query_source=pipeline_cfg.footage_query_source,
    )
