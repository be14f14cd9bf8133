"""Placeholder thumbnails from picsum.photos; a seed always maps to the same image."""

PICSUM_BASE = "https://picsum.photos"

WIDTH  = 800
HEIGHT = 450


def random_image_url(width: int = WIDTH, height: int = HEIGHT) -> str:
    return f"{PICSUM_BASE}/{width}/{height}"


def seeded_image_url(seed: str | int, width: int = WIDTH, height: int = HEIGHT) -> str:
    seed_num = seed if isinstance(seed, int) else sum(ord(ch) for ch in seed)
    return f"{PICSUM_BASE}/seed/{seed_num}/{width}/{height}"


def course_thumbnail(
    thumbnail_url: str | None,
    course_id: str | None,
    width: int = WIDTH,
    height: int = HEIGHT,
) -> str:
    if thumbnail_url:
        return thumbnail_url
    if course_id:
        return seeded_image_url(course_id, width, height)
    return random_image_url(width, height)
