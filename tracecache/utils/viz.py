from __future__ import annotations
from typing import List

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from ..runtime.cache import AccessOutcome
from ..runtime.stats import CacheStats


def outcomes_to_frame(outcomes: List[AccessOutcome]) -> pd.DataFrame:
    df = pd.DataFrame([
        {
            'access': i,
            'address': o.address,
            'index': o.index,
            'tag': o.tag_hex,
            'hit': int(o.hit),
            'type': o.miss_type,
        }
        for i, o in enumerate(outcomes)
    ])
    return df


def export_dashboard(outcomes: List[AccessOutcome], stats: CacheStats, path: str):
    if not outcomes:
        with open(path, "w") as f:
            f.write("<h1>Cache Simulation</h1><p>No data to display.</p>")
        return

    df = outcomes_to_frame(outcomes)
    df['hit_rate'] = stats.hit_rate_history[:len(df)]

    fig = make_subplots(
        rows=2, cols=2,
        subplot_titles=("Cache Hit Rate Over Time", "Miss Type Distribution",
                        "Access Pattern", "Accesses per Set"),
    )

    fig.add_trace(go.Scatter(x=df['access'], y=df['hit_rate'], mode="lines", name="Hit Rate"),
                  row=1, col=1)

    miss_counts = {"Cold": stats.cold_misses, "Conflict": stats.conflict_misses, "Capacity": stats.capacity_misses}
    fig.add_trace(go.Bar(x=list(miss_counts), y=list(miss_counts.values()), name="Miss Types"),
                  row=1, col=2)

    for label, group in df.groupby('type'):
        fig.add_trace(go.Scatter(x=group['access'], y=group['index'], mode="markers", name=label,
                                 text=group['address'], hovertemplate="%{text}<br>set %{y}"),
                      row=2, col=1)

    per_set = df.groupby('index').agg(hits=('hit', 'sum'), accesses=('hit', 'size')).reset_index()
    fig.add_trace(go.Bar(x=per_set['index'], y=per_set['hits'], name="Hits per Set"), row=2, col=2)
    fig.add_trace(go.Bar(x=per_set['index'], y=per_set['accesses'] - per_set['hits'], name="Misses per Set"),
                  row=2, col=2)

    fig.update_xaxes(title="Access Number", row=1, col=1)
    fig.update_yaxes(title="Hit Rate (%)", range=[0, 100], row=1, col=1)
    fig.update_xaxes(title="Access Number", row=2, col=1)
    fig.update_yaxes(title="Set Index", row=2, col=1)
    fig.update_xaxes(title="Set Index", row=2, col=2)
    fig.update_layout(
        title=f"Cache Simulation ({stats.total_accesses} accesses, {stats.get_hit_rate():.2f}% hit rate)",
        height=800,
        barmode="stack",
        font=dict(family="Courier New, monospace", size=12),
    )

    fig.write_html(path, include_plotlyjs="cdn", full_html=True)


def export_access_pattern_ascii(outcomes: List[AccessOutcome], width: int = 80):
    if not outcomes:
        return "Trace is empty."

    lanes = {}
    for pos, o in enumerate(outcomes):
        lanes.setdefault(o.index, []).append((pos, o.hit))

    total = len(outcomes)
    columns = min(total, width)
    scale = columns / total

    chart = "Cache Access Pattern (H = hit, M = miss)\n"
    chart += "-" * (columns + 10) + "\n"
    for index in sorted(lanes):
        lane = ['-'] * columns
        for pos, hit in lanes[index]:
            col = min(int(pos * scale), columns - 1)
            # A miss is never hidden by a hit that shares its column.
            if lane[col] != 'M':
                lane[col] = 'H' if hit else 'M'
        chart += f"{'x%X' % index:>8} |" + "".join(lane) + "\n"
    chart += "-" * (columns + 10) + "\n"
    chart += f"{total} accesses across {len(lanes)} sets\n"

    return chart
