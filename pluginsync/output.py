"""
Output module for pluginsync.

Provides consistent output formatting across all commands:
- JSONL (default): Newline-delimited JSON for piping
- Pretty: Human-readable tables using Rich

Usage:
    from pluginsync.output import emit, emit_error

    emit(results, pretty=pretty)
    emit_error("Not a fork", type="config_error", context={"repo": "me/x"})
"""

import json
import sys
from typing import Iterable, Any, Dict, Optional, List

from rich.console import Console
from rich.table import Table


def emit(items: Iterable[Any], pretty: bool = False) -> None:
    """
    Emit items to stdout as JSONL or pretty table.

    Args:
        items: Items to emit (should have to_dict() method or be dicts)
        pretty: If True, render as table. If False, output JSONL
    """
    if pretty:
        _emit_table(items, sys.stdout)
    else:
        _emit_jsonl(items, sys.stdout)


def _as_dict(item: Any) -> Dict[str, Any]:
    if hasattr(item, 'to_dict'):
        return item.to_dict()
    if isinstance(item, dict):
        return item
    return {'value': str(item)}


def _emit_jsonl(items: Iterable[Any], stream=sys.stdout) -> None:
    """Emit items as JSONL."""
    for item in items:
        print(json.dumps(_as_dict(item), ensure_ascii=False), file=stream, flush=True)


def _emit_table(items: Iterable[Any], stream=sys.stdout) -> None:
    """Emit items as a Rich table."""
    rows = [_as_dict(item) for item in items]

    if not rows:
        print("No results found", file=stream)
        return

    columns = _auto_columns(rows)

    console = Console(file=stream)
    table = Table(show_header=True, header_style="bold")

    for col in columns:
        table.add_column(col)

    for row in rows:
        table.add_row(*[_format_value(row.get(col, '')) for col in columns])

    console.print(table)


def _auto_columns(rows: List[Dict]) -> List[str]:
    """Auto-detect columns from rows."""
    # Common column order preference
    preferred = ['name', 'repository', 'fork_repo', 'type', 'state', 'branch', 'maintainer', 'sha']

    all_keys = []
    for row in rows:
        for key in row:
            if key not in all_keys:
                all_keys.append(key)

    columns = [col for col in preferred if col in all_keys]
    for key in all_keys:
        if key not in columns:
            columns.append(key)

    # Limit to reasonable number
    return columns[:8]


def _format_value(value: Any, max_len: int = 50) -> str:
    """Format a value for table display."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, list):
        s = ', '.join(str(v) for v in value[:3])
        if len(value) > 3:
            s += f' (+{len(value) - 3} more)'
        return s
    if isinstance(value, dict):
        return '{...}'

    s = str(value)
    if len(s) > max_len:
        return s[:max_len-3] + '...'
    return s


def emit_error(
    error: str,
    type: str = "error",
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Emit error to stderr as JSON.

    Args:
        error: Error message
        type: Error type (e.g., "policy_violation", "config_error")
        context: Additional context dict
    """
    obj = {
        'error': error,
        'type': type
    }
    if context:
        obj['context'] = context

    print(json.dumps(obj, ensure_ascii=False), file=sys.stderr, flush=True)
