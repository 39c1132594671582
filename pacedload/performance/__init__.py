"""Run statistics and process resource profiling."""
