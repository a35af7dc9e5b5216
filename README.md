# podscale

`podscale` is a small discrete-event simulation of a job-processing pipeline.
A controller scales the pipeline's worker pods up and down.

```
Scanner(s) -> queue -> Orchestrator pods -> queue2 -> Catalog pods
                             ^                              ^
                             +--------- Controller ---------+
```

## Components

- **Scanner** (`podscale.scanner.Scanner`): creates a `Job` every
  `interArrivalTime` and sends it to its target queue. The interval can be a
  fixed value or a callable, which is drawn again for each job.
- **JobQueue** (`podscale.jobqueue.JobQueue`): services one job at a time, each
  for `serviceTime`. A serviced job becomes ready and a worker can take it with
  `pop_job()`. An arriving job is dropped when the number of waiting jobs plus
  ready jobs has reached `capacity`. A negative capacity means the queue has no
  limit. `len(queue)` is the number of ready jobs.
- **Worker** (`podscale.worker.Worker`) and its two kinds, **Orchestrator** and
  **Catalog**:
  - A worker polls its input queue every `TimeToWaitIfQueueIsEmpty` while the
    queue is empty.
  - It processes a job for `TimeToConsume`.
  - It reacts to `enable unit-` and `disable unit-` messages.
  - An orchestrator forwards each finished job to `queue2`.
  - A catalog retires each finished job and reports its end-to-end latency.
  - `status()` returns a `UnitStatus`: `IDLE`, `BUSY` or `DISABLED`.
- **Controller** (`podscale.controller.Controller`): starts by disabling the
  pods above the configured minimum. It then samples both queues every
  `SamplingFreq` and applies one of two `ControlFunction`s:
  - `Linear`: the wanted pod count grows linearly with the latest queue length
    and reaches the maximum at `queueFullThrottle`. Once the sample history has
    filled, the controller scales down to the count given by the truncated
    average of the recent samples (`average_samples`). It does this only when
    that count is below the current count and not below the count the latest
    sample asks for.
  - `QDTE`: estimates the drain time as queue length / (active pods × service
    rate).
    - When the estimate is above the latency target, the controller adds
      `increaseRateQueue*` pods, up to the maximum.
    - After `stabilityThreshold` stable samples, it removes one pod per sample,
      down to the minimum.
- **StatsCollector** (`podscale.stats.StatsCollector`):
  - counts generated jobs, orchestrator completions, completed jobs and dropped
    jobs;
  - emits the job latency;
  - at the end of a run, records the scalars `droppedGeneratedRatio` and
    `droppedCompletedRatio`.

`podscale.kernel` holds the event loop that runs all of these:

- `Simulation` holds the modules, the future-event set and the recorded
  statistics. `step()` processes one event. `run(until)` processes events up to a
  time and then calls every module's `finish()`.
- `Module` is the base class for components, with access to their parameters.
- `Message` is an event.

Every signal a module emits is stored with its time. Read the values back with
`Simulation.signal_values(source, signal)`. Scalars are in `Simulation.scalars`.

## Installation

```
pip install .
```

Use `pip install .[test]` to install pytest as well.

## Command line

```
podscale
```

This runs the pipeline up to time 100 with the default configuration and prints
a summary of the run, one `key: value` per line.

| Option | Meaning |
| --- | --- |
| `--until` | simulation end time |
| `--scanners` | number of scanners |
| `--inter-arrival` | time between the jobs a scanner creates |
| `--exponential` | draw exponentially distributed inter-arrival times instead of fixed ones |
| `--seed` | seed for the exponential draws |
| `--capacity` | queue capacity; negative means unbounded |
| `--orchestrators`, `--catalogs` | number of pods of each kind |
| `--min-orchs`, `--min-catalogs` | minimum number of active pods |
| `--orch-time`, `--catalog-time` | processing time per job |
| `--sampling-freq` | controller sampling interval |
| `--control` | `Linear`, `QDTE` or `none`; `none` runs without a controller |

Run `podscale --help` for the full list.

## Library use

```python
from podscale.network import SystemConfig, build_system

system = build_system(SystemConfig(control_function="QDTE", queue_capacity=50))
system.run(until=1000.0)
print(system.summary())
```

`SystemConfig` holds every parameter of the pipeline and rejects inconsistent
values with `ValueError`. Set `control_function=None` to build the pipeline
without a controller.

`summary()` returns a dict with these keys:

- `time`
- `generated`, `orch_work`, `completed`, `dropped`
- `dropped_vs_generated`, `dropped_vs_completed`
- `queue_length`, `queue2_length`
- `active_orchestrators`, `active_catalogs`
- `control_messages`

## What it does not do

- There is no graphical view of the running pipeline. Modules only offer
  `display_text()` strings.
- Recorded signals and scalars stay in memory. Nothing is written to result
  files.

## Running the tests

```
pytest
```