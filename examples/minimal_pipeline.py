import logging

from parascore import Coordinator, CoordinatorConfig, MappingFetcher, MemoryResultSink, Processor, WorkPool
from parascore.processing import RandomScoringModel, WhitespaceTokenizer
from parascore.utils import setup_logging


def main() -> None:
    setup_logging("INFO")
    log = logging.getLogger("minimal_pipeline")

    # Even ids have no record and are skipped.
    records = {i: f"document number {i} about parallel workers" for i in range(1, 50, 2)}

    print("▶ Running minimal pipeline...")
    with MemoryResultSink() as sink:
        coordinator = Coordinator(
            MappingFetcher(records),
            Processor(WhitespaceTokenizer(), RandomScoringModel(seed=7)),
            sink,
            CoordinatorConfig(workers=4, progress_every=10),
        )
        summary = coordinator.run(WorkPool.from_range(1, 51))

    print(f"Processed: {summary.processed}")
    print(f"Skipped:   {summary.skipped} ({summary.absent} absent, {summary.failed} failed)")
    for result in sorted(sink.results, key=lambda r: r.item_id)[:5]:
        print(f"  {result.item_id}: {result.score:.3f}")
    log.info("Throughput: %.1f items/s", summary.throughput_ips)


if __name__ == "__main__":
    main()
