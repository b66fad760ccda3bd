"""JXR AutoCleaner -- convert new JPEG XR captures into (Ultra HDR) JPEGs.

Core modules:
    config      -- Agent configuration via pydantic-settings (JXR_* env vars)
                   and loguru setup with a rotating log file.
    cli         -- Click CLI: ``--convert FILE`` one-shot mode, otherwise the
                   background service.
    service     -- Starts the watcher and worker threads, wires signals to
                   shutdown and force scans, cleans orphan temp files.
    context     -- SchedulerContext: queue, shutdown/wake signals, force-run
                   flag shared by every thread.
    work_queue  -- Cancellable FIFO with front-priority retry and broadcast
                   shutdown.
    watcher     -- Directory watcher; rescans the tree on notification
                   overflow.
    events      -- DirectoryEventStream interface and its watchdog backend.
    worker      -- Single conversion worker: busy gate, readiness probe,
                   dispatch.
    busy_gate   -- Exclusive-foreground and cached CPU load check.
    readiness   -- Exclusive-open probe with bounded retries.
    retry       -- Bounded retry-with-delay over ProbeResult.
    force_scan  -- Out-of-band full sweep that bypasses the busy gate.
    scanner     -- Extension filter, converted-counterpart dedup, walks.
    converter   -- Decode, encode to a temp file, atomic replace.
    codec       -- ImageCodec interface; imagecodecs/Pillow implementation.
    rescale     -- scRGB to gain-map white-point rescaling.
    concurrency -- Single-instance lock.
"""

__version__ = "1.1.2"
