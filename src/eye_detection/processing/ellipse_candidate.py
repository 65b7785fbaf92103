from dataclasses import dataclass


@dataclass(frozen=True)
class EllipseCandidate:
    center_x: int       # pixel column of the fitted center
    center_y: int       # pixel row
    radius: float

    @property
    def center(self) -> tuple[int, int]:
        return (self.center_x, self.center_y)

    def __iter__(self):
        # allows: cx, cy, r = candidate
        return iter((self.center_x, self.center_y, self.radius))
