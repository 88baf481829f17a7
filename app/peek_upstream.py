# app/peek_upstream.py
# One-shot probe: fetch once and show what the extractor/mapper make of it.
from app.run_server import build_client
from upstream.extract import extract_records
from upstream.mapper import map_records

with build_client() as client:
    result = client.fetch()

print("status :", result.status, result.error or "")
print("elapsed:", f"{result.elapsed_ms}ms")
if isinstance(result.body, dict):
    print("top-level keys:", list(result.body.keys())[:8])
else:
    print("body preview:", result.preview(200))

raws = extract_records(result.body)
entries = map_records(raws, admitted_ms=result.fetched_at_ms)
print(f"records={len(raws)} mapped={len(entries)}")
if raws:
    print("first record keys:", list(raws[0].keys()))
for e in entries[:5]:
    print(" ", e.period, e.number, e.label)
