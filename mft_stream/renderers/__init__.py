"""
Record renderers for mft-stream.

Each output mode of ``EntriesIterator`` has one renderer module:

- to_object.py -> ``MftRecord`` dataclass (with the resolved full path)
- to_json.py   -> JSON text of the decoded entry
- to_csv.py    -> one CSV row as bytes, header row on request

flat.py holds the flattening shared by the CSV renderer and the bulk
exporter, so a CSV stream and an export of the same image agree column
for column.

Renderers raise ``SerializationError``; the iterator turns it into the
value for the slot.
"""
