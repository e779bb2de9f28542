"""Stop flag for graceful shutdown between variant builds."""

import logging
import signal
import threading
from typing import Dict, Optional


class StopFlag:
    """Thread-safe stop flag checked by the pipeline before each variant."""

    _instance: Optional['StopFlag'] = None

    def __init__(self):
        """Initialize the stop flag."""
        self._stop_requested = threading.Event()
        self._previous_handlers: Dict[int, object] = {}

    @classmethod
    def get_instance(cls) -> 'StopFlag':
        """Get singleton instance of StopFlag."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def request_stop(self):
        """Request a graceful stop after the current variant completes."""
        self._stop_requested.set()
        logging.warning("Stop requested - will finish current variant and exit...")

    def is_stop_requested(self) -> bool:
        """Check if stop has been requested."""
        return self._stop_requested.is_set()

    def reset(self):
        """Reset the stop flag."""
        self._stop_requested.clear()

    def register_signal_handlers(self):
        """Register handlers for Ctrl+C and termination signals."""
        if self._previous_handlers:
            return

        def signal_handler(signum, frame):
            """Handle interrupt signals gracefully."""
            self.request_stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._previous_handlers[sig] = signal.signal(sig, signal_handler)
            except (ValueError, OSError):
                # Not in the main thread, or signal unavailable on this platform
                logging.debug(f"Could not register handler for signal {sig}")

    def restore_signal_handlers(self):
        """Put back the handlers that were active before registration."""
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers = {}
