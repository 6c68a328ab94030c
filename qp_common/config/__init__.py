"""Configuration helpers shared across qprof packages."""

from qp_common.config.env import parse_bool_env

__all__ = ["parse_bool_env"]
