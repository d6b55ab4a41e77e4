"""Secure parameter values and the ARM parameters file."""
import json
import os
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from jinja2 import BaseLoader, Environment

from ..errors import ConfigurationError

ENV_PREFIX = "ARMGRAPH_PARAM_"

PARAMETERS_TEMPLATE = """{
  "$schema": "https://schema.management.azure.com/schemas/2019-04-01/deploymentParameters.json#",
  "contentVersion": "1.0.0.0",
  "parameters": {
{% for name in parameters %}
    {{ name | tojson }}: {
      "value": {{ values.get(name, "") | tojson }}
    }{% if not loop.last %},{% endif %}

{% endfor %}
  }
}
"""


def env_var_name(parameter: str) -> str:
    """Environment variable consulted for a parameter, e.g. ``ARMGRAPH_PARAM_DB_PASSWORD``."""
    return ENV_PREFIX + parameter.upper().replace("-", "_")


def parse_param_options(options: Iterable[str]) -> Dict[str, str]:
    """Parse ``name=value`` command line options.

    Raises:
        ConfigurationError: If an option has no ``=``.
    """
    values = {}
    for option in options:
        name, sep, value = option.partition("=")
        if not sep or not name:
            raise ConfigurationError(f"Parameter '{option}' must be given as name=value")
        values[name] = value
    return values


def load_parameters_file(path: str) -> Dict[str, str]:
    """Read non-empty values from an ARM parameters file."""
    with open(path, "r") as f:
        data = json.load(f)
    return {
        name: entry["value"]
        for name, entry in data.get("parameters", {}).items()
        if isinstance(entry, dict) and entry.get("value")
    }


def resolve_parameter_values(
    names: List[str],
    explicit: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Collect a value for every secure parameter.

    Explicit values win over environment variables.

    Args:
        names: Parameter names declared by the template.
        explicit: Values given on the command line or read from a file.
        environ: Environment to consult, defaults to ``os.environ``.

    Returns:
        Dict[str, str]: Value per parameter name.

    Raises:
        ConfigurationError: If any parameter has no value.
    """
    explicit = explicit or {}
    environ = os.environ if environ is None else environ

    values = {}
    missing = []
    for name in names:
        if name in explicit:
            values[name] = explicit[name]
        elif env_var_name(name) in environ:
            values[name] = environ[env_var_name(name)]
        else:
            missing.append(name)

    if missing:
        hints = ", ".join(f"{name} ({env_var_name(name)})" for name in missing)
        raise ConfigurationError(f"Missing values for secure parameters: {hints}")
    return values


def render_parameters_file(names: List[str], values: Optional[Mapping[str, str]] = None) -> str:
    """Render the parameters file, leaving unknown values empty."""
    env = Environment(loader=BaseLoader(), trim_blocks=True, lstrip_blocks=True)
    env.filters["tojson"] = json.dumps
    template = env.from_string(PARAMETERS_TEMPLATE)
    return template.render(parameters=names, values=dict(values or {}))


def write_parameters_file(path: Path, names: List[str], values: Optional[Mapping[str, str]] = None) -> Path:
    path.write_text(render_parameters_file(names, values))
    return path
