"""Real-time notification delivery over sockets."""
