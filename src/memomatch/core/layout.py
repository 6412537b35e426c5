"""Grid geometry — where each card slot sits on the canvas."""

from __future__ import annotations

from dataclasses import dataclass

from memomatch.core.card import Point

# Grids wider than this are laid out on the large canvas.
LARGE_GRID_COLUMNS = 10


@dataclass(frozen=True, slots=True)
class GridGeometry:
    """Resolved card size, spacing and origin for one grid."""

    cols: int
    rows: int
    card_width: float
    card_height: float
    margin: float
    origin: Point
    scale: float

    def slot(self, index: int) -> Point:
        """Canvas coordinate of the *index*-th slot, row-major."""
        col = index % self.cols
        row = index // self.cols
        return Point(
            self.origin.x + col * (self.card_width + self.margin),
            self.origin.y + row * (self.card_height + self.margin),
        )

    @property
    def width(self) -> float:
        return self.cols * self.card_width + (self.cols - 1) * self.margin

    @property
    def height(self) -> float:
        return self.rows * self.card_height + (self.rows - 1) * self.margin


@dataclass(frozen=True)
class GridLayout:
    """Canvas and card dimensions used to place a deck."""

    canvas_width: float = 1200
    canvas_height: float = 800
    large_canvas_width: float = 1600
    large_canvas_height: float = 1000
    card_width: float = 95
    card_height: float = 133
    margin: float = 12
    top_offset: float = 180
    side_padding: float = 40
    bottom_reserve: float = 40

    def canvas_for(self, cols: int) -> tuple[float, float]:
        if cols > LARGE_GRID_COLUMNS:
            return self.large_canvas_width, self.large_canvas_height
        return self.canvas_width, self.canvas_height

    def fit(self, cols: int, rows: int) -> GridGeometry:
        """Centre a ``cols x rows`` grid, shrinking (never growing) cards to fit."""
        canvas_w, canvas_h = self.canvas_for(cols)
        grid_w = cols * self.card_width + (cols - 1) * self.margin
        grid_h = rows * self.card_height + (rows - 1) * self.margin

        available_w = canvas_w - self.side_padding
        available_h = canvas_h - self.top_offset - self.bottom_reserve
        scale = min(available_w / grid_w, available_h / grid_h, 1.0)

        card_w = self.card_width * scale
        card_h = self.card_height * scale
        margin = self.margin * scale
        grid_w = cols * card_w + (cols - 1) * margin
        grid_h = rows * card_h + (rows - 1) * margin

        origin = Point(
            (canvas_w - grid_w) / 2,
            self.top_offset + (canvas_h - self.top_offset - grid_h) / 2,
        )
        return GridGeometry(cols, rows, card_w, card_h, margin, origin, scale)

    def positions(self, count: int, cols: int, rows: int) -> list[Point]:
        geometry = self.fit(cols, rows)
        return [geometry.slot(i) for i in range(count)]
