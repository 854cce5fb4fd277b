"""Host resource sampling, independent of the relay core."""

from src.stats.sampler import StatsSample, read_cpu_temperature, sample_stats


__all__ = ["StatsSample", "read_cpu_temperature", "sample_stats"]
