from .connect_normalize import connect_normalize
from .random_graph import random_eulerian, random_graph

__all__ = ["connect_normalize", "random_eulerian", "random_graph"]
