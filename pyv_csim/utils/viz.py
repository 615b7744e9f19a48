import plotly.express as px
import pandas as pd

OUTCOMES = ["hit", "miss", "miss_eviction"]


def export_set_activity(timeline, path: str):
    if not timeline:
        with open(path, "w") as f:
            f.write("<h1>Cache Set Activity</h1><p>No data to display.</p>")
        return

    df = pd.DataFrame(timeline)
    # Drop rows without a usable set index
    df['set'] = pd.to_numeric(df['set'], errors='coerce')
    df = df.dropna(subset=['set', 'outcome'])
    df['set'] = df['set'].astype(int)

    counts = (df.groupby(['set', 'outcome']).size()
                .reset_index(name='accesses'))

    fig = px.bar(
        counts,
        x="set",
        y="accesses",
        color="outcome",
        category_orders={"outcome": OUTCOMES},
        title="Cache Set Activity",
        labels={"set": "Set Index", "accesses": "Accesses", "outcome": "Outcome"},
    )

    fig.update_layout(
        barmode="stack",
        font=dict(family="Courier New, monospace", size=12),
        legend_title="Outcome"
    )

    fig.write_html(path, include_plotlyjs="cdn", full_html=True)


def export_set_activity_ascii(timeline, width: int = 60):
    if not timeline:
        return "Timeline is empty."

    # Group by set
    set_lanes = {}
    for item in timeline:
        lane = set_lanes.setdefault(item['set'], {o: 0 for o in OUTCOMES})
        lane[item['outcome']] += 1

    busiest = max(sum(lane.values()) for lane in set_lanes.values())
    scale = width / busiest

    chart = "Cache Set Activity (ASCII)\n"
    chart += "" + ("-" * (width + 30)) + "\n"

    # h = hit, m = miss, e = miss with eviction
    for set_index in sorted(set_lanes):
        lane = set_lanes[set_index]
        bar = ""
        for outcome, char in zip(OUTCOMES, "hme"):
            bar += char * round(lane[outcome] * scale)
        total = sum(lane.values())
        chart += f"set {set_index:>6} |{bar:<{width}}| {total}\n"

    chart += "" + ("-" * (width + 30)) + "\n"
    chart += "h = hit, m = miss, e = miss with eviction\n"

    return chart
