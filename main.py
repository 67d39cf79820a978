# main.py
"""
Main entry point for the Flow Field Generator.

This script orchestrates the entire application lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Sets up the display, the simulation and the export sequence.
4. Runs the main frame loop.
5. Handles clean shutdown.
"""
import logging
from utils import setup_logging, load_config
from constants import FPS
import numpy as np
import cProfile
import pstats
import io


def main():
    """
    The main function to run the application.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Flow Field Generator Starting ---")

    run_params = config.get('run_control', {})
    export_params = config.get('export', {})

    from settings import SimulationSettings
    from simulation import Simulation
    from export import ExportSequence
    from visualization import Visualizer

    settings = SimulationSettings.from_dict(config.get('simulation_parameters', {}))

    # --- Component Initialization ---
    # 1. The visualizer opens the window and so determines the canvas size.
    visualizer = Visualizer()

    # 2. The simulation and exporter are built around that canvas.
    sim = Simulation(settings, visualizer.width, visualizer.height)
    exporter = ExportSequence(
        sim,
        raster_writer=visualizer.capture_png,
        output_dir=export_params.get('output_dir', 'exports')
    )

    profile = run_params.get('profile', False)
    profiler = cProfile.Profile()

    log_throttle = run_params.get('log_throttle_steps', 300)
    # 0 runs until the window is closed
    max_steps = run_params.get('max_steps', 0)

    running = True
    frame_num = 0

    if profile:
        profiler.enable()
    while running:
        sim.step()
        frame_num += 1

        # The visualizer handles input and returns False when the user quits.
        if not visualizer.draw(sim, exporter):
            running = False

        # Export phases advance only after a frame has been presented.
        if exporter.active:
            exporter.advance()

        visualizer.clock.tick(FPS)

        # Hot loops must throttle logs
        if frame_num % log_throttle == 0:
            logging.info(f"Frame {frame_num} | {len(sim.particles)} particles | mode {sim.mode.value}")
            if len(sim.particles):
                avg_speed = np.mean(np.linalg.norm(sim.particles.velocities, axis=1))
                logging.debug(f"Frame {frame_num} | Average Speed: {avg_speed:.4f}")

        if max_steps and frame_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping.")
            running = False

    # An export in flight always runs to completion.
    while exporter.active:
        exporter.advance()

    if profile:
        profiler.disable()

    visualizer.close()
    logging.info("Frame loop finished.")

    if profile:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Flow Field Generator Shutting Down ---")


if __name__ == "__main__":
    main()
