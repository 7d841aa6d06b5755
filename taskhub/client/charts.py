from typing import List, Sequence


def moving_average(values: Sequence[float], window: int = 7) -> List[float]:
    """Trailing average; the first points average over however many values exist so far."""
    if window < 1:
        raise ValueError("window must be at least 1")
    result = []
    for i in range(len(values)):
        chunk = values[max(0, i - window + 1):i + 1]
        result.append(round(sum(chunk) / len(chunk), 2))
    return result


def productivity_chart(productivity: Sequence[dict], window: int = 7) -> dict:
    """Labels, daily counts and their moving average from a productivity series."""
    counts = [point["count"] for point in productivity]
    return {
        "labels": [point["date"] for point in productivity],
        "completed": counts,
        "average": moving_average(counts, window),
    }
