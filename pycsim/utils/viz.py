from __future__ import annotations
import plotly.express as px
import pandas as pd

CHART_WIDTH = 80


def export_set_activity(rows, path: str):
    """Writes a stacked bar chart of hits/misses/evictions per cache set."""
    if not rows:
        with open(path, "w") as f:
            f.write("<h1>Cache Set Activity</h1><p>No data to display.</p>")
        return

    df = pd.DataFrame(rows)
    long_df = df.melt(
        id_vars=["set"],
        value_vars=["hits", "misses", "evictions"],
        var_name="outcome",
        value_name="count",
    )
    # Sets are categorical labels, not a numeric axis
    long_df["set"] = long_df["set"].astype(str)

    fig = px.bar(
        long_df,
        x="set",
        y="count",
        color="outcome",
        barmode="stack",
        title="Cache Set Activity",
        labels={"set": "Set Index", "count": "Accesses", "outcome": "Outcome"},
    )
    fig.update_layout(
        font=dict(family="Courier New, monospace", size=12),
        legend_title="Outcome",
    )

    fig.write_html(path, include_plotlyjs="cdn", full_html=True)


def export_set_activity_ascii(rows):
    if not rows:
        return "No cache set activity."

    max_total = max(row["hits"] + row["misses"] for row in rows)
    scale = CHART_WIDTH / max_total

    chart = "Cache Set Activity (H = hit, M = miss)\n"
    chart += "-" * (CHART_WIDTH + 10) + "\n"
    for row in rows:
        hit_len = int(row["hits"] * scale)
        miss_len = int(row["misses"] * scale)
        lane = ("H" * hit_len + "M" * miss_len).ljust(CHART_WIDTH, " ")
        chart += f"{row['set']:>8} |{lane}\n"
    chart += "-" * (CHART_WIDTH + 10) + "\n"
    chart += f"max {max_total} accesses per set\n"
    return chart
