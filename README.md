# sensordhs

Building blocks for moving sensor data between threads and recording
metadata about it. The package uses only the standard library.

## Modules

- `sensordhs.timeutil`: time differences held as integer nanoseconds
  (`time_s`, `time_ms`, `time_us`, `time_ns` and `to_s`, `to_ms`, `to_us`,
  `to_ns`), the `Timespec` value type with `add` and `to_ns`, clock readings
  (`now`, `monotonic`, `timespec_absolute`), `timespec_diff`,
  `timespec_from`, `timeval_from`, `timeout_expired` and `sleep`.
  `TIMEOUT_NONE` (0) means "do not block" and `TIMEOUT_MAX` means
  "wait forever".
- `sensordhs.thread`: `Semaphore`, `Mutex`, `CondVar` and `Barrier`, whose
  waits take nanosecond timeouts. A zero timeout on a semaphore or mutex
  raises `BlockingIOError` if it would block; an expired timed wait raises
  `TimeoutError`. `ThreadControl` carries a stop request
  (`signal_stop`, `should_stop`, `wait_for_signal`) and a stopped
  acknowledgement (`mark_stopped`, `has_stopped`, `wait_for_stop`).
- `sensordhs.thread_group`: `ThreadGroup` runs a list of tasks on their own
  threads, each called with the same shared data (given directly or built by
  an `init` callable). When all tasks return, the optional `cleanup` is
  called and the group is marked completed; `join` waits for that.
  `GroupManager` starts groups with `start_all` and blocks in `wait_for_all`
  until all have completed or a `should_shutdown` callable returns true.
- `sensordhs.sensor_pipe`: `SensorDataPipe`, a ring of fixed-capacity
  `PipeBuffer`s cycled between one writer and one reader. At most
  `buf_count - 1` buffers wait to be read at a time.
- `sensordhs.circular_buffer`: `CircularBuffer`, a blocking byte ring whose
  `insert` waits for room and `read` waits for data, optionally recording
  throughput and occupancy in `Metric`s; and `QueueItem`, a payload of at most
  260 bytes tagged with protocol and unit id.
- `sensordhs.metrics`: `Metric`, a ring of timestamped integer samples of a
  `MetricType`, appended to a binary file every `flush_interval` samples or on
  `write_to_file`; `read_samples` reads such a file back into `MetricSample`s.
- `sensordhs.compressed_store`: creates and fills two tables through any
  DB-API 2.0 connection: run lengths of all-zero data
  (`initialize_rle_storage`, `store_rle_metadata`,
  `store_rle_metadata_with_timespecs`) and single zero-data timestamps
  (`initialize_full_storage`, `store_metadata`). Placeholders follow the
  driver module's `paramstyle`; failures raise `StorageError`.

## Examples

A writer and a reader sharing a pipe:

```python
from sensordhs.sensor_pipe import SensorDataPipe

pipe = SensorDataPipe(buf_count=4, buf_size=1024)
pipe.current_write_buffer().push(b"packet")
pipe.flush()
buf = pipe.get_read_buffer()
print(buf.data)   # b'packet'
```

Recording metric samples:

```python
from sensordhs.metrics import Metric, MetricType, read_samples

with Metric(MetricType.OCCUPANCY, "occupancy.bin") as metric:
    metric.add_sample(42)
    metric.write_to_file()

print([s.data for s in read_samples("occupancy.bin")])   # [42]
```

Timeouts are nanosecond integers:

```python
from sensordhs.thread import Semaphore
from sensordhs.timeutil import time_ms

sem = Semaphore(0)
try:
    sem.wait(time_ms(100))
except TimeoutError:
    print("nothing posted")
```

## What it does not do

The package has no network input: it does not connect to a Modbus server,
read or parse Modbus TCP frames, or fill a `SensorDataPipe` from a socket.
Nor does it inspect sensor packets to find all-zero ones; `compressed_store`
only records timestamps and run lengths that the caller supplies. There is no
command-line program.

## Tests

```
pip install -e .[test]
pytest
```