import logging
import json
import os
from dataclasses import asdict
from typing import Any, Dict, Iterable, Optional

from .models import ProbeResult, RunConfig, Summary

logger = logging.getLogger(__name__)


class ResultWriter:
    def __init__(self, result_file: str = "udpinger_results.json"):
        self.result_file = result_file

    def save(self, config: RunConfig, summary: Summary, results: Iterable[ProbeResult]) -> bool:
        state = {
            "config": asdict(config),
            "summary": asdict(summary),
            "results": [r.to_dict() for r in sorted(results, key=lambda r: r.sequence)],
        }
        try:
            with open(self.result_file, "w") as f:
                json.dump(state, f, indent=2)
            logger.info(f"Results saved to {self.result_file}")
            return True
        except OSError as e:
            logger.error(f"Failed to save results: {e}")
            return False

    def load(self) -> Optional[Dict[str, Any]]:
        if not os.path.exists(self.result_file):
            logger.info(f"No result file at {self.result_file}.")
            return None
        try:
            with open(self.result_file, "r") as f:
                state = json.load(f)
            loaded = {
                "config": RunConfig(**state["config"]),
                "summary": Summary(**state["summary"]),
                "results": [ProbeResult.from_dict(r) for r in state.get("results", [])],
            }
            logger.info(f"Loaded {len(loaded['results'])} probe results from {self.result_file}")
            return loaded
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load results: {e}")
            return None
