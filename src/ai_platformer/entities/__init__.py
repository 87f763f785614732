"""Game entities (player, enemies, collectibles, particles)."""
