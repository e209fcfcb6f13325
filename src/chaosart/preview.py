"""
Interactive preview window.

Shows the live point cloud with the current equation and clock readout.

Controls:
    SPACE         pause / resume
    N or RIGHT    next equation
    ESC           quit
"""

from typing import List, Optional

import pygame

from chaosart.core.engine import ChaosEngine
from chaosart.render.rasterizer import PointRasterizer, RenderConfig

_TEXT_COLOR = (235, 235, 235)
_DIM_COLOR = (150, 150, 150)


def format_clock(value: float) -> str:
    """Clock readout shown under the equation."""
    return f"t = {value:.4f}"


class PreviewWindow:
    """pygame front end around the shared engine."""

    def __init__(self, engine: ChaosEngine, config: Optional[RenderConfig] = None):
        self.engine = engine
        self.cfg = config or RenderConfig(width=960, height=540, fps=60)
        self.rasterizer = PointRasterizer(self.cfg)
        self.equation_lines: List[str] = engine.equation.split("\n")
        self.running = False

        self.screen: Optional[pygame.Surface] = None
        self.font: Optional[pygame.font.Font] = None

    def on_equation(self, equation: str) -> None:
        self.equation_lines = equation.split("\n")

    def handle_key(self, key: int) -> None:
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_SPACE:
            self.engine.toggle_pause()
        elif key in (pygame.K_n, pygame.K_RIGHT):
            self.engine.reset()

    def _draw_overlay(self, surface: pygame.Surface) -> None:
        y = 10
        for line in self.equation_lines:
            surface.blit(self.font.render(line, True, _TEXT_COLOR), (12, y))
            y += self.font.get_linesize()

        clock_text = format_clock(self.engine.current_time)
        if self.engine.paused:
            clock_text += "  (paused)"
        surface.blit(self.font.render(clock_text, True, _DIM_COLOR), (12, y + 4))

    def draw_frame(self) -> None:
        frame = self.rasterizer.render_engine_frame(self.engine)
        # pygame uses (width, height) but numpy frames are (height, width)
        surface = pygame.surfarray.make_surface(frame.swapaxes(0, 1))
        self.screen.blit(surface, (0, 0))
        self._draw_overlay(self.screen)

    def run(self) -> None:
        pygame.init()
        pygame.display.set_caption("Chaos Equation Visualizer")
        self.screen = pygame.display.set_mode((self.cfg.width, self.cfg.height))
        self.font = pygame.font.SysFont("consolas", 18)
        clock = pygame.time.Clock()

        self.engine.register_listener(self.on_equation)
        self.running = True
        try:
            while self.running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.KEYDOWN:
                        self.handle_key(event.key)

                self.draw_frame()
                pygame.display.flip()
                clock.tick(self.cfg.fps)
        finally:
            self.engine.remove_listener(self.on_equation)
            pygame.quit()
