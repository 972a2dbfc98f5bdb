"""Transaction orchestration: signing queue, approval poller, orchestrators."""
