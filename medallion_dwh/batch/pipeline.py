"""
Medallion pipeline: bronze -> silver -> gold.

Each layer runs as its own batch through a BatchOrchestrator. A failed layer
stops the run; the layers after it are not attempted, so gold is never
rebuilt from a silver snapshot that did not commit.
"""

from ..config.settings import PipelineSettings
from ..core.catalog import BRONZE, GOLD, LAYERS, SILVER
from ..core.models.batch_result import BatchResult
from ..observability.logger import get_logger, log_operation
from ..warehouse.load_log import FailureLog, TableLoadLog
from ..warehouse.reload import ReloadJob
from ..warehouse.store import LayerStore
from .bronze import BronzeLoader, SourceReader
from .gold import GoldLoader
from .orchestrator import BatchOrchestrator
from .silver import SilverLoader

logger = get_logger(__name__)


class MedallionPipeline:
    """
    Runs layer batches in order.

    Args:
        store: Store holding every layer
        settings: Pipeline settings (sources, reference date)
        reader: Source file reader, required only for the bronze layer
    """

    def __init__(
        self,
        store: LayerStore,
        settings: PipelineSettings,
        reader: SourceReader | None = None,
    ):
        self.store = store
        self.settings = settings
        self.reader = reader
        self.failure_log = FailureLog(store)

    def jobs_for(self, layer: str) -> list[ReloadJob]:
        """
        Reload jobs of a layer.

        Raises:
            ValueError: If the layer is unknown, or bronze is requested
                without a reader
        """
        if layer == BRONZE:
            if self.reader is None:
                raise ValueError("A source reader is required to load the bronze layer")
            return BronzeLoader(self.reader, self.settings).jobs()
        if layer == SILVER:
            return SilverLoader(self.store, as_of=self.settings.reference_date()).jobs()
        if layer == GOLD:
            return GoldLoader(self.store).jobs()
        raise ValueError(f"Unknown layer '{layer}'. Must be one of {', '.join(LAYERS)}")

    def run_layer(self, layer: str) -> BatchResult:
        jobs = self.jobs_for(layer)
        orchestrator = BatchOrchestrator(
            store=self.store,
            step_log=TableLoadLog.for_layer(self.store, layer),
            failure_log=self.failure_log,
            layer=layer,
        )
        return orchestrator.run(jobs)

    def run(self, layers: list[str] | tuple[str, ...] = LAYERS) -> list[BatchResult]:
        """
        Run the requested layers in the given order.

        Returns:
            One BatchResult per attempted layer; the last one is the failed
            layer if the run stopped early
        """
        results = []
        with log_operation("Medallion pipeline", logger=logger, layers=list(layers)):
            for layer in layers:
                result = self.run_layer(layer)
                results.append(result)
                if not result.succeeded:
                    logger.error(
                        f"Stopping pipeline after failed {layer} batch",
                        extra={"layer": layer, "skipped_layers": list(layers[len(results):])},
                    )
                    break
        return results
