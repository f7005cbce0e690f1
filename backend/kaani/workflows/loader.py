# /kaani/workflows/loader.py

import json
import logging
import os
from typing import Dict, List, Optional, Tuple, get_args

from pydantic import ValidationError

from kaani.models.flow import Audience, FlowDefinition
from kaani.utils.metrics import flow_load_counter
from kaani.workflows.errors import FlowDefinitionError
from kaani.workflows.validator import validate_flow_definition

logger = logging.getLogger(__name__)

FLOW_FILE_SUFFIX = ".flow.json"


def flow_filename(audience: str, flow_id: str) -> str:
    return f"{audience}.{flow_id}{FLOW_FILE_SUFFIX}"


def _format_validation_error(error: ValidationError) -> list:
    problems = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"]) or "root"
        problems.append(f"{location}: {err['msg']}")
    return problems


def parse_flow_file(path: str, strict: bool = False) -> FlowDefinition:
    """
    Read, schema-validate and (in strict mode) integrity-check one flow file.

    Raises:
        FlowDefinitionError: The file is missing, is not JSON, fails the
            schema, or (strict only) has dangling references
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        raise FlowDefinitionError("Flow file not found", path=path)
    except json.JSONDecodeError as e:
        raise FlowDefinitionError(f"JSON parse error: {e}", path=path)

    try:
        flow = FlowDefinition.model_validate(raw)
    except ValidationError as e:
        raise FlowDefinitionError("Schema validation failed", path=path, problems=_format_validation_error(e))

    if strict:
        result = validate_flow_definition(flow)
        if not result["is_valid"]:
            raise FlowDefinitionError("Referential validation failed", path=path, problems=result["problems"])

    return flow


class FlowRegistry:
    """
    Loads flow packages from disk and caches them by (audience, flow_id).

    One registry is built per application; tests build their own against a
    temporary directory and call `clear()` between cases as needed.
    """

    def __init__(self, flows_dir: str, strict: bool = False):
        self.flows_dir = flows_dir
        self.strict = strict
        self._cache: Dict[Tuple[str, str], FlowDefinition] = {}

    def path_for(self, audience: str, flow_id: str) -> str:
        return os.path.join(self.flows_dir, flow_filename(audience, flow_id))

    def load_strict(self, audience: str, flow_id: str = "default") -> FlowDefinition:
        """Like `load`, but raises FlowDefinitionError instead of returning None."""
        key = (audience, flow_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        flow = parse_flow_file(self.path_for(audience, flow_id), strict=self.strict)
        if flow.audience != audience:
            raise FlowDefinitionError(
                f"Flow audience '{flow.audience}' does not match requested audience '{audience}'",
                path=self.path_for(audience, flow_id),
            )
        self._cache[key] = flow
        flow_load_counter.labels(status="loaded").inc()
        logger.info(f"Loaded flow package {audience}.{flow_id} (v{flow.version})")
        return flow

    def load(self, audience: str, flow_id: str = "default") -> Optional[FlowDefinition]:
        """
        Returns the cached or freshly loaded flow, or None when the file is
        missing or invalid so callers can fall back to unguided chat.
        """
        try:
            return self.load_strict(audience, flow_id)
        except FlowDefinitionError as e:
            flow_load_counter.labels(status="failed").inc()
            logger.warning(f"Failed to load flow package {audience}.{flow_id}: {e}")
            return None

    def preload(self, flow_id: str = "default") -> List[str]:
        """Load the flow for every audience up front; returns the audiences that loaded."""
        return [audience for audience in get_args(Audience) if self.load(audience, flow_id) is not None]

    def clear(self) -> None:
        self._cache.clear()
