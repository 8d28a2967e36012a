from skyops.ops.board import Flight, FlightStatus, OpsBoard, default_flights

__all__ = ["Flight", "FlightStatus", "OpsBoard", "default_flights"]
