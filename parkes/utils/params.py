from typing import Any, Dict


def merge_query_params(ctx) -> Dict[str, Any]:
    # Route params take precedence over the query string
    merged = dict(ctx.query)
    merged.update(ctx.params)
    return merged
