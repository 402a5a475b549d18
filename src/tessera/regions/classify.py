"""
Shape-based semantic labels for detected regions.

Deterministic rules only: width, height and aspect ratio (width / height) are
mapped to a label such as icon, avatar, banner or card. Each call site owns a
threshold table so the numbers can be tuned without touching the decision order.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ShapeThresholds:
    """Named limits for classify_shape. None disables a rule."""
    icon_max: int                       # both sides <= this -> icon
    avatar_max: int                     # both sides <= this and near-square -> avatar
    avatar_tolerance: float             # |aspect - 1| below this counts as near-square
    banner_min_aspect: float            # aspect above this -> banner
    vertical_max_aspect: float          # aspect below this -> vertical_label
    vertical_label: str
    card_min_width: int                 # width and height above these -> card
    card_min_height: int
    default_label: str
    square_tolerance: Optional[float] = None
    button_max_height: Optional[int] = None
    button_min_width: Optional[int] = None


# Contour, flood-fill and hybrid fallback
REGION_SHAPES = ShapeThresholds(
    icon_max=64,
    avatar_max=120,
    avatar_tolerance=0.3,
    banner_min_aspect=3.0,
    vertical_max_aspect=0.33,
    vertical_label="sidebar",
    square_tolerance=0.2,
    card_min_width=200,
    card_min_height=150,
    button_max_height=80,
    button_min_width=100,
    default_label="image",
)

# Components mode (smaller icons, shorter cards)
COMPONENT_SHAPES = ShapeThresholds(
    icon_max=48,
    avatar_max=100,
    avatar_tolerance=0.3,
    banner_min_aspect=3.0,
    vertical_max_aspect=0.3,
    vertical_label="sidebar",
    card_min_width=200,
    card_min_height=100,
    button_max_height=60,
    button_min_width=100,
    default_label="component",
)

# Externally seeded regions that arrive without a label
SEED_SHAPES = ShapeThresholds(
    icon_max=64,
    avatar_max=120,
    avatar_tolerance=0.3,
    banner_min_aspect=3.0,
    vertical_max_aspect=0.33,
    vertical_label="vertical",
    card_min_width=150,
    card_min_height=100,
    default_label="image",
)


@dataclass(frozen=True)
class CardThresholds:
    small_max: int = 80
    banner_min_aspect: float = 2.5
    vertical_max_aspect: float = 0.5
    square_tolerance: float = 0.3
    dashboard_min_width: int = 150
    dashboard_min_height: int = 100


CARD_SHAPES = CardThresholds()

# Caption/tag keywords checked before shape rules, in priority order
SEED_KEYWORDS = (
    (("icon", "symbol"), "icon"),
    (("logo", "brand"), "logo"),
    (("chart", "graph"), "chart"),
    (("photo", "photograph"), "photo"),
    (("button",), "button"),
)

CAPTION_KEYWORDS = (
    (("icon",), "icon"),
    (("logo",), "logo"),
    (("chart", "graph"), "chart"),
    (("button",), "button"),
    (("card",), "card"),
)


def aspect_of(width: int, height: int) -> float:
    return width / height if height > 0 else float("inf")


def classify_shape(width: int, height: int, thresholds: ShapeThresholds = REGION_SHAPES) -> str:
    """Map a region's size and aspect ratio to a label using one threshold table."""
    t = thresholds
    aspect = aspect_of(width, height)

    if width <= t.icon_max and height <= t.icon_max:
        return "icon"
    if width <= t.avatar_max and height <= t.avatar_max and abs(aspect - 1) < t.avatar_tolerance:
        return "avatar"
    if aspect > t.banner_min_aspect:
        return "banner"
    if aspect < t.vertical_max_aspect:
        return t.vertical_label
    if t.square_tolerance is not None and abs(aspect - 1) < t.square_tolerance:
        return "square"
    if width > t.card_min_width and height > t.card_min_height:
        return "card"
    if (
        t.button_max_height is not None
        and t.button_min_width is not None
        and height <= t.button_max_height
        and width > t.button_min_width
    ):
        return "button"
    return t.default_label


def classify_region(width: int, height: int) -> str:
    return classify_shape(width, height, REGION_SHAPES)


def classify_component(width: int, height: int) -> str:
    return classify_shape(width, height, COMPONENT_SHAPES)


def classify_card(width: int, height: int, thresholds: CardThresholds = CARD_SHAPES) -> str:
    """Card flavour by proportions."""
    t = thresholds
    aspect = aspect_of(width, height)

    if width <= t.small_max and height <= t.small_max:
        return "widget-small"
    if aspect > t.banner_min_aspect:
        return "banner-card"
    if aspect < t.vertical_max_aspect:
        return "vertical-card"
    if abs(aspect - 1) < t.square_tolerance:
        return "square-card"
    if width > t.dashboard_min_width and height > t.dashboard_min_height:
        return "dashboard-card"
    return "card"


def classify_seed(caption: Optional[str], tags: Iterable[str], width: int, height: int) -> str:
    """
    Label an externally detected region: tags first, then caption keywords,
    then the SEED_SHAPES table.
    """
    lowered_tags = [tag.lower() for tag in tags]
    for keywords, label in SEED_KEYWORDS:
        if any(keyword in tag for tag in lowered_tags for keyword in keywords):
            return label

    text = (caption or "").lower()
    for keywords, label in CAPTION_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return label

    label = classify_shape(width, height, SEED_SHAPES)
    logger.debug(f"Seed region {width}x{height} classified by shape as {label}")
    return label
