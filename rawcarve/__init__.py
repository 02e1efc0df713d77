# rawcarve — Signature-based file carving from raw media.
# Recovers files from disk images and memory dumps by header/footer
# matching alone; no filesystem metadata is read.
#
# Architecture (bottom → top):
#   signatures   — File type catalog (header, footer policy, size bound)
#   matcher      — All occurrences of a byte pattern in a buffer
#   extent       — Header hit → candidate length (footer or size bound)
#   scanner      — Carving engine: catalog × hits → CandidateRecord list
#   parallel     — Multiprocessing scan, catalog split across workers
#   mmap_reader  — Medium loader (read-only mmap, buffered fallback)
#   writer       — recovered_<offset>_<index>.<ext> output files
#   manager      — Orchestrator (single file / scan location, reports)

