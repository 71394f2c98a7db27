"""Lossless ``json`` output: the result model, dumped with camelCase keys."""

from __future__ import annotations

import json
from typing import Any, Mapping

from pydantic import BaseModel

from speclens.models import (
    EndpointDetails,
    EndpointList,
    ErrorMessage,
    SessionInfo,
    SuccessMessage,
    TagList,
)
from speclens.render.base import Renderer


def _dumps(data: Any) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


class JsonRenderer(Renderer):
    def render_endpoint_list(self, data: EndpointList) -> str:
        return _dumps(data)

    def render_endpoint_details(self, data: EndpointDetails) -> str:
        return _dumps(data)

    def render_session_info(self, data: SessionInfo) -> str:
        return _dumps(data)

    def render_tags(self, data: TagList) -> str:
        return _dumps(data)

    def render_components(self, data: Mapping[str, Any]) -> str:
        return _dumps(dict(data or {}))

    def render_success(self, data: SuccessMessage) -> str:
        return _dumps(data)

    def render_error(self, data: ErrorMessage) -> str:
        return _dumps(data)
