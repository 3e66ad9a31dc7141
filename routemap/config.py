from dataclasses import dataclass


@dataclass(frozen=True)
class GraphConfig:
    # Logical canvas, in simulation units. The origin sits at the centre.
    width: float = 300.0
    height: float = 180.0

    # Base sizes at zoom factor 1
    node_radius: float = 2.0
    font_size: float = 4.0
    letter_spacing: float = 0.1
    link_width: float = 0.1
    arrow_size: float = 1.0

    focus_threshold: float = 5.0
    min_zoom: float = 0.1
    max_zoom: float = 40.0
    wheel_factor: float = 1.1

    # Colours
    node_color: str = "#00bcd4"
    label_color: str = "#ffffff"
    link_color: str = "#555555"
    bg_color: str = "#121212"
    faded_opacity: float = 0.2

    # Loops
    tick_interval_ms: int = 16  # ~60 FPS
    poll_interval_ms: int = 5000


DEFAULT_CONFIG = GraphConfig()
