from __future__ import annotations
import json
from datetime import datetime, timezone
from .base import Renderer, register


@register
class JsonRenderer(Renderer):
    format_name = 'json'

    def render(self, result, cfg) -> str:
        doc = {
            'timestamp': datetime.now(timezone.utc).isoformat(timespec='seconds'),
            'sort_by': result.sort_by.value,
            'sort_order': result.sort_order,
            'nodes': [r.to_dict() for r in result.records],
        }
        if not cfg.no_sum:
            # percentages are not additive across nodes
            doc['totals'] = result.totals.to_dict()
        return json.dumps(doc, indent=2)
