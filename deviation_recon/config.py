"""
Configuration
Purpose: YAML settings merged over built-in defaults
"""

import copy
import os
from typing import Dict, Optional

import yaml
from loguru import logger

DEFAULT_CONFIG = "config_deviations.yaml"


def get_default_config() -> Dict:
    return {
        "project": {"station": ""},
        "overview": {
            "sheet_name": None,
            # false reproduces the earlier behaviour: no action holder needed
            "require_action_holder": True,
        },
        "database": {"sheet_name": None, "header_row": 2},
        "dashboard": {"sheet_name": "Afwijking achterstallig", "station_cell": "B1"},
        "output": {"folder": "data/output", "report_prefix": "Afwijkingen_dashboard_export"},
        "logging": {"level": "INFO", "file": "logs/deviation_recon.log"},
    }


def merge_dict(base: Dict, override: Dict) -> None:
    for k, v in (override or {}).items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            merge_dict(base[k], v)
        else:
            base[k] = v


def load_config(path: Optional[str] = DEFAULT_CONFIG) -> Dict:
    base = copy.deepcopy(get_default_config())
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as fh:
            cfg = yaml.safe_load(fh) or {}
        if not isinstance(cfg, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        merge_dict(base, cfg)
        logger.info(f"Loaded config: {path}")
        return base
    logger.warning(f"Config file {path} not found. Using defaults.")
    return base
