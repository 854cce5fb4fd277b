"""Host resource sampling for the stats stream."""

import psutil
import structlog
from pydantic import BaseModel, ConfigDict


logger = structlog.get_logger()

BYTES_PER_MIB = 1024 * 1024

# Sensor names/labels that report the CPU package temperature
CPU_SENSOR_KEYS = frozenset({"Package id 0", "Tdie", "coretemp"})

DISK_PATH = "/"


class StatsSample(BaseModel):
    """One snapshot of host resource usage. Sizes are in MiB."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cpu_percent: float
    cpu_cores: int
    load1: float
    load5: float
    load15: float

    mem_used: int
    mem_total: int
    mem_percent: float

    swap_used: int
    swap_total: int
    swap_percent: float

    temp: float

    disk_used: int
    disk_total: int
    disk_percent: float


def read_cpu_temperature() -> float:
    """Read the CPU package temperature in Celsius.

    Returns:
        Temperature of the first matching sensor, 0.0 when unavailable.
    """
    read_sensors = getattr(psutil, "sensors_temperatures", None)
    if read_sensors is None:
        return 0.0

    try:
        sensors = read_sensors()
    except (OSError, RuntimeError) as e:
        logger.debug("temperature_unavailable", error=str(e))
        return 0.0

    for name, entries in sensors.items():
        for entry in entries:
            if name in CPU_SENSOR_KEYS or entry.label in CPU_SENSOR_KEYS:
                return float(entry.current)
    return 0.0


def sample_stats(disk_path: str = DISK_PATH) -> StatsSample:
    """Take a snapshot of CPU, load, memory, swap, disk and temperature.

    CPU percent is measured since the previous call (the first call of
    the process reports 0.0).

    Args:
        disk_path: Mount point whose usage is reported.

    Returns:
        StatsSample for this instant.
    """
    load1, load5, load15 = psutil.getloadavg()
    vmem = psutil.virtual_memory()
    swap = psutil.swap_memory()
    disk = psutil.disk_usage(disk_path)

    return StatsSample(
        cpu_percent=psutil.cpu_percent(interval=None),
        cpu_cores=psutil.cpu_count(logical=True) or 0,
        load1=load1,
        load5=load5,
        load15=load15,
        mem_used=vmem.used // BYTES_PER_MIB,
        mem_total=vmem.total // BYTES_PER_MIB,
        mem_percent=vmem.percent,
        swap_used=swap.used // BYTES_PER_MIB,
        swap_total=swap.total // BYTES_PER_MIB,
        swap_percent=swap.percent,
        temp=read_cpu_temperature(),
        disk_used=disk.used // BYTES_PER_MIB,
        disk_total=disk.total // BYTES_PER_MIB,
        disk_percent=disk.percent,
    )
