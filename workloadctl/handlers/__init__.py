from workloadctl.handlers import probes, workload

__all__ = ["probes", "workload"]
