"""Hydra entry point for the filtration analysis.

Usage::

    uv run python -m filtration

Or with config overrides::

    uv run python -m filtration model.f2="m**2" shooting.enabled=false
"""

from __future__ import annotations

import hydra
from loguru import logger
from omegaconf import DictConfig

from filtration.analysis.pipeline import analyse, build_model


@hydra.main(version_base=None, config_path="../configs", config_name="config")
def main(cfg: DictConfig) -> None:
    """Characterise the singular arc of the configured model."""
    logger.info("Config: {}", dict(cfg))
    model = build_model(cfg)
    report = analyse(model, cfg)
    logger.info("Report: {}", report)


if __name__ == "__main__":
    main()
