# backend/app/cli/__init__.py
from .seed_demo import SeedResult, seed_demo

__all__ = ["SeedResult", "seed_demo"]
