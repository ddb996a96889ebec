"""
Configuration management for the stochastic simulation engine.

Simulation defaults, named presets, and JSON loading utilities for
simulation configs and (non-custom) stochastic models.
"""

import json
from dataclasses import fields, replace
from typing import Dict, Any

from .types import (
    MonteCarloConfig, StochasticModel, StochasticVariable, Distribution,
    DISTRIBUTION_TYPES, Custom,
)


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_BURN_IN_FRACTION = 0.1
DEFAULT_THINNING = 1
DEFAULT_CONVERGENCE_THRESHOLD = 0.01
DEFAULT_TIMEOUT = 60.0          # seconds
DEFAULT_CHAINS = 1
DEFAULT_PROGRESS_FRACTION = 0.01

DEFAULT_PERCENTILES = (2.5, 25.0, 50.0, 75.0, 97.5)

DEFAULT_CONVERGENCE_THRESHOLDS: Dict[str, float] = {
    'geweke': 2.0,       # |aggregate z| above this -> not stationary
    'r_hat': 1.1,        # split R-hat above this -> not mixed
    'ess_ratio': 0.1,    # min ESS / n below this -> too autocorrelated
}

# Early-stop check cadence, in kept samples
CONVERGENCE_CHECK_INTERVAL = 100

MIN_SAMPLES_FOR_ASSESSMENT = 100
MIN_SAMPLES_FOR_DIAGNOSTICS = 10
MIN_SAMPLES_FOR_GEWEKE = 20


# =============================================================================
# Simulation Presets
# =============================================================================

SIMULATION_PRESETS: Dict[str, MonteCarloConfig] = {
    # Smoke-test sized run; early stop disabled so every iteration executes.
    'quick': MonteCarloConfig(
        iterations=1000,
        burn_in=100,
        convergence_threshold=0.0,
        timeout=10.0,
    ),

    'standard': MonteCarloConfig(
        iterations=10000,
        burn_in=1000,
        convergence_threshold=DEFAULT_CONVERGENCE_THRESHOLD,
        timeout=DEFAULT_TIMEOUT,
    ),

    # Four thinned chains for R-hat across chains.
    'thorough': MonteCarloConfig(
        iterations=100000,
        burn_in=10000,
        thinning=5,
        convergence_threshold=0.001,
        timeout=300.0,
        chains=4,
    ),
}


def get_preset(name: str) -> MonteCarloConfig:
    """
    Fresh copy of a named preset.

    Raises:
        ValueError: If the preset does not exist
    """
    if name not in SIMULATION_PRESETS:
        raise ValueError(
            f"Unknown preset '{name}'. Available: {sorted(SIMULATION_PRESETS)}"
        )
    return replace(SIMULATION_PRESETS[name])


# =============================================================================
# JSON Loading Utilities
# =============================================================================

def load_config_from_json(path: str) -> MonteCarloConfig:
    """
    Load simulation config from JSON file.

    Expected format (every key but "iterations" optional):
    {
        "iterations": 10000,
        "burn_in": 1000,
        "thinning": 1,
        "convergence_threshold": 0.01,
        "seed": 42,
        "timeout": 60.0,
        "progress_interval": 100,
        "chains": 1
    }
    """
    with open(path, 'r') as f:
        data = json.load(f)

    if 'iterations' not in data:
        raise ValueError(f"Config file {path} is missing 'iterations'")

    known = {f.name for f in fields(MonteCarloConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {unknown}")

    return MonteCarloConfig(**data)


def save_config_to_json(config: MonteCarloConfig, path: str):
    """Save simulation config to JSON file."""
    with open(path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)


def distribution_from_dict(data: Dict[str, Any]) -> Distribution:
    """
    Build a distribution spec from its JSON form.

    Example:
        {"type": "normal", "mean": 50.0, "std_dev": 5.0}

    Raises:
        ValueError: Unknown or custom type, or missing/extra parameters
    """
    params = dict(data)
    dist_type = params.pop('type', None)
    if dist_type == Custom.type:
        raise ValueError("Custom distributions cannot be loaded from JSON")
    if dist_type not in DISTRIBUTION_TYPES:
        raise ValueError(f"Unknown distribution type: {dist_type}")

    cls = DISTRIBUTION_TYPES[dist_type]
    expected = {f.name for f in fields(cls)}
    if set(params) != expected:
        raise ValueError(
            f"Distribution '{dist_type}' expects parameters {sorted(expected)}, "
            f"got {sorted(params)}"
        )
    return cls(**params)


def distribution_to_dict(spec: Distribution) -> Dict[str, Any]:
    """JSON form of a distribution spec. Custom specs are not serialisable."""
    if spec.type == Custom.type:
        raise ValueError("Custom distributions cannot be saved to JSON")
    data = {'type': spec.type}
    for f in fields(spec):
        value = getattr(spec, f.name)
        data[f.name] = dict(value) if isinstance(value, dict) else value
    return data


def load_model_from_json(path: str) -> StochasticModel:
    """
    Load a stochastic model from JSON file.

    Expected format:
    {
        "model_id": "demand",
        "description": "optional",
        "variables": [
            {"name": "price", "distribution": {"type": "normal", "mean": 10, "std_dev": 2}},
            {"name": "units", "distribution": {"type": "poisson", "lam": 40}}
        ]
    }
    """
    with open(path, 'r') as f:
        data = json.load(f)

    variables = [
        StochasticVariable(
            name=var['name'],
            distribution=distribution_from_dict(var['distribution']),
            description=var.get('description'),
        )
        for var in data['variables']
    ]

    return StochasticModel(
        variables=tuple(variables),
        model_id=data.get('model_id', 'model'),
        description=data.get('description'),
    )


def save_model_to_json(model: StochasticModel, path: str):
    """Save a stochastic model (without custom distributions) to JSON file."""
    data = {
        'model_id': model.model_id,
        'description': model.description,
        'variables': [
            {
                'name': var.name,
                'distribution': distribution_to_dict(var.distribution),
                'description': var.description,
            }
            for var in model.variables
        ]
    }

    with open(path, 'w') as f:
        json.dump(data, f, indent=2)
