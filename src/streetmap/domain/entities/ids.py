from typing import NewType

# Stable integer handles into the store's flat arrays.
RoadId = NewType("RoadId", int)
NodeId = NewType("NodeId", int)
RailwayId = NewType("RailwayId", int)
