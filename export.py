# export.py
"""
The ordered PNG + SVG export sequence.

Exporting freezes the simulation, lets the renderer commit a clean frame,
captures it as a PNG, serializes the same state as SVG and then resumes.
Each phase runs on a separate advance() call, which the host loop makes
once per committed frame, so no phase can start before the previous
phase's visible effects are on screen.
"""
import logging
import os
import time
from enum import Enum
from typing import Callable, Optional

from constants import EXPORT_PREFIX
from simulation import Simulation
from svg_export import render_svg

# --- Data Contracts ---
#
# class ExportSequence:
#   - start(self, timestamp: Optional[int] = None) -> bool:
#     - Outputs: False if an export is already running.
#     - Side Effects: freezes the simulation; state -> CAPTURING_RASTER.
#
#   - advance(self) -> ExportState:
#     - Side Effects, by state:
#       CAPTURING_RASTER -> writes <prefix>-<ts>.png, -> CAPTURING_VECTOR
#       CAPTURING_VECTOR -> writes <prefix>-<ts>.svg, -> DONE
#       DONE             -> resumes the simulation,   -> IDLE
#     - Invariants: both files of one export share the same timestamp.
#       A failed write is logged and the sequence continues.


class ExportState(Enum):
    IDLE = "idle"
    CAPTURING_RASTER = "capturing_raster"
    CAPTURING_VECTOR = "capturing_vector"
    DONE = "done"


def export_filename(timestamp: int, extension: str) -> str:
    return f"{EXPORT_PREFIX}-{timestamp}.{extension}"


def current_millis() -> int:
    return int(time.time() * 1000)


class ExportSequence:
    """
    Drives one export at a time through its phases.
    """
    def __init__(self, simulation: Simulation, raster_writer: Callable[[str], None],
                 output_dir: str = "exports", clock: Callable[[], int] = current_millis):
        """
        Args:
            simulation (Simulation): The simulation to freeze and serialize.
            raster_writer (Callable[[str], None]): Saves the current frame
                as a PNG at the given path.
            output_dir (str): Directory receiving both files.
            clock (Callable[[], int]): Millisecond timestamp source.
        """
        self.simulation = simulation
        self.raster_writer = raster_writer
        self.output_dir = output_dir
        self.clock = clock
        self.state = ExportState.IDLE
        self.timestamp: Optional[int] = None
        self.last_svg: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.state is not ExportState.IDLE

    def path_for(self, extension: str) -> str:
        return os.path.join(self.output_dir, export_filename(self.timestamp, extension))

    def start(self, timestamp: Optional[int] = None) -> bool:
        if self.active:
            logging.warning("Export already in progress; request ignored.")
            return False
        self.timestamp = timestamp if timestamp is not None else self.clock()
        self.simulation.begin_export()
        self.state = ExportState.CAPTURING_RASTER
        logging.info(f"Export {self.timestamp} started; simulation frozen.")
        return True

    def advance(self) -> ExportState:
        if self.state is ExportState.CAPTURING_RASTER:
            self._capture_raster()
            self.state = ExportState.CAPTURING_VECTOR
        elif self.state is ExportState.CAPTURING_VECTOR:
            self._capture_vector()
            self.state = ExportState.DONE
        elif self.state is ExportState.DONE:
            self.simulation.end_export()
            self.state = ExportState.IDLE
            logging.info("Exported SVG and PNG!")
        return self.state

    def run_to_completion(self, timestamp: Optional[int] = None) -> bool:
        """Runs every phase back to back, for headless use."""
        if not self.start(timestamp):
            return False
        while self.active:
            self.advance()
        return True

    def _ensure_output_dir(self) -> None:
        if self.output_dir:
            os.makedirs(self.output_dir, exist_ok=True)

    def _capture_raster(self) -> None:
        path = self.path_for("png")
        try:
            self._ensure_output_dir()
            self.raster_writer(path)
            logging.info(f"Saved raster export to {path}")
        except OSError as e:
            logging.error(f"Could not write PNG export {path}: {e}")

    def _capture_vector(self) -> None:
        sim = self.simulation
        path = self.path_for("svg")
        self.last_svg = render_svg(sim.particles, sim.settings, sim.width, sim.height)
        try:
            self._ensure_output_dir()
            with open(path, 'w', encoding='utf-8') as f:
                f.write(self.last_svg)
            logging.info(f"Saved vector export to {path}")
        except OSError as e:
            logging.error(f"Could not write SVG export {path}: {e}")
