"""Pure domain value objects shared by all rental modules (ZERO I/O)."""
