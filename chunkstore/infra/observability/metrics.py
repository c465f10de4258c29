from prometheus_client import Counter, Histogram

# 低基数标签：只用操作名与结果，chunk 名不进标签
CHUNK_OPERATIONS = Counter(
    "chunk_storage_operations_total",
    "Total chunk storage operations",
    ["operation", "outcome"],
)

CHUNK_OPERATION_LATENCY = Histogram(
    "chunk_storage_operation_duration_seconds",
    "Chunk storage operation latency in seconds",
    ["operation"],
)

CONCAT_BYTES = Counter(
    "chunk_storage_concat_bytes_total",
    "Bytes appended to target chunks through concat",
)

CONCAT_PARTS = Counter(
    "chunk_storage_concat_parts_total",
    "Parts copied into multipart sessions by concat",
)
