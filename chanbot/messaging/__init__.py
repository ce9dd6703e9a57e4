"""Chat messaging pipeline -- dispatch loop, commands, reply formatting."""
