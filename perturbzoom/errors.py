class PerturbZoomError(Exception):
    pass

class InvalidDepth(PerturbZoomError, ValueError):
    def __init__(self, depth) -> None:
        super().__init__(f"depth must be a positive integer, got {depth!r}")
        self.depth = depth

class InsufficientOrbitData(PerturbZoomError, RuntimeError):
    def __init__(self) -> None:
        super().__init__("reference orbit is empty; pixels cannot be evaluated")

class RenderCancelled(PerturbZoomError, RuntimeError):
    def __init__(self, generation: int) -> None:
        super().__init__(f"render generation {generation} was superseded")
        self.generation = generation
