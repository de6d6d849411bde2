"""Hypothesis strategies for property-based testing."""

from hypothesis import strategies as st


@st.composite
def generate_caption_dict(draw):
    """Generate a random valid caption segment as it appears in a manifest."""
    start = draw(st.floats(min_value=0.0, max_value=120.0, allow_nan=False))
    length = draw(st.floats(min_value=0.01, max_value=10.0, allow_nan=False))
    text = draw(st.text(min_size=0, max_size=40))
    return {"start": round(start, 3), "end": round(start + length, 3) + 0.001, "text": text}


@st.composite
def generate_broll_dict(draw, index: int = 0):
    """Generate a random B-roll manifest entry."""
    ext = draw(st.sampled_from(["jpg", "png", "mp4", "mov"]))
    kind = "video" if ext in ("mp4", "mov") else "image"
    entry = {
        "id": f"broll-{index}",
        "src": draw(
            st.sampled_from(
                [f"https://cdn.example.com/a.{ext}", f"/media/clip.{ext}", f"file:///media/x.{ext}"]
            )
        ),
        "type": kind,
        "startSeconds": round(draw(st.floats(min_value=0.0, max_value=60.0)), 3),
        "durationSeconds": round(draw(st.floats(min_value=0.1, max_value=15.0)), 3),
    }
    if draw(st.booleans()):
        entry["thumb"] = "https://cdn.example.com/thumb.jpg"
    return entry


@st.composite
def generate_brolls(draw, max_size: int = 5):
    n = draw(st.integers(min_value=0, max_value=max_size))
    return [draw(generate_broll_dict(index=i)) for i in range(n)]


captions_strategy = st.lists(generate_caption_dict(), max_size=12)
