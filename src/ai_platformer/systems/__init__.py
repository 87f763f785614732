"""Game systems (physics, platforms, camera, rendering, level generation)."""
