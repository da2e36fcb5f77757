"""
Text codec for persisted cluster records.

One line per cluster, written at the end of an iteration and read back at the
start of the next:

    C3: [1.0, 2.0]      unconverged cluster 3
    V3: [1.0, 2.0]      converged cluster 3

Floats are written with repr(), so float64 centers round-trip exactly.
"""

from typing import Iterable, List, Optional, Tuple, Union
import math
import torch
from torch import Tensor

from ..base.data_structures import ClusterState
from ..base.exceptions import DecodeError


CONVERGED_PREFIX = 'V'
UNCONVERGED_PREFIX = 'C'


def format_vector(vector: Tensor) -> str:
    """'[v0, v1, ...]' with full float precision."""
    return '[' + ', '.join(repr(float(v)) for v in vector.tolist()) + ']'


def parse_vector(text: str, dtype: torch.dtype = torch.float64) -> Tensor:
    """Parse the output of format_vector.

    Raises:
        ValueError: If the text is not a bracketed list of finite numbers
    """
    text = text.strip()
    if not (text.startswith('[') and text.endswith(']')):
        raise ValueError(f"Vector must be enclosed in brackets: {text!r}")

    body = text[1:-1].strip()
    if not body:
        raise ValueError("Vector has no components")

    values = []
    for token in body.split(','):
        value = float(token.strip())
        if not math.isfinite(value):
            raise ValueError(f"Non-finite component {token.strip()!r}")
        values.append(value)
    return torch.tensor(values, dtype=dtype)


def format_cluster(cluster: ClusterState) -> str:
    """Encode a cluster as '<V|C><id>: [center]'."""
    return f"{cluster.identifier}: {format_vector(cluster.center)}"


def _split_record(text: str) -> Tuple[bool, int, Tensor]:
    """Parse a record into (converged, cluster_id, center), raising DecodeError."""
    begin = text.find('[')
    if begin < 0:
        raise DecodeError("Record has no '[' starting the center vector",
                          field='center', record=text)

    head = text[:begin].strip()
    if not head or head[0] not in (CONVERGED_PREFIX, UNCONVERGED_PREFIX):
        raise DecodeError(f"Record prefix must be 'C' or 'V', got {head[:1]!r}",
                          field='prefix', record=text)

    id_text = head[1:]
    if id_text.endswith(':'):
        id_text = id_text[:-1]
    id_text = id_text.strip()
    if not (id_text.isascii() and id_text.isdigit()):
        raise DecodeError(f"Cluster id must be a non-negative integer, got {id_text!r}",
                          field='id', record=text)

    try:
        center = parse_vector(text[begin:])
    except ValueError as e:
        raise DecodeError(f"Unparsable center vector: {e}",
                          field='center', record=text) from e

    return head[0] == CONVERGED_PREFIX, int(id_text), center


def decode_cluster(text: str) -> Optional[ClusterState]:
    """Rebuild a cluster from format_cluster output.

    The result has the encoded id, center and converged flag, and an empty
    accumulator.

    Returns:
        The cluster, or None if the record is malformed
    """
    try:
        converged, cluster_id, center = _split_record(text)
    except DecodeError:
        return None
    return ClusterState(center, cluster_id, converged=converged)


def dump_clusters(clusters: Iterable[ClusterState]) -> List[str]:
    """One encoded line per cluster."""
    return [format_cluster(cluster) for cluster in clusters]


def load_clusters(lines: Union[str, Iterable[str]]) -> List[ClusterState]:
    """Decode every non-blank line; any bad record aborts the load.

    Args:
        lines: Iterable of records, or one string with a record per line

    Raises:
        DecodeError: Naming the line number and the field that failed
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    clusters = []
    seen = set()
    for line_number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            converged, cluster_id, center = _split_record(line)
        except DecodeError as e:
            raise DecodeError(f"Line {line_number}: {e}", line_number=line_number,
                              field=e.field, record=line) from e

        if cluster_id in seen:
            raise DecodeError(f"Line {line_number}: duplicate cluster id {cluster_id}",
                              line_number=line_number, field='id', record=line)
        if clusters and center.shape[0] != clusters[0].dimension:
            raise DecodeError(
                f"Line {line_number}: center has dimension {center.shape[0]}, "
                f"expected {clusters[0].dimension}",
                line_number=line_number, field='center', record=line
            )

        seen.add(cluster_id)
        clusters.append(ClusterState(center, cluster_id, converged=converged))
    return clusters
