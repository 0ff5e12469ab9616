"""Forum API declared in Python, imported by the CLI tests as ``forum_schema:builder``."""

from restez.schema import SchemaBuilder, compile_schema

builder = SchemaBuilder("https://svc.com", api_key="K")
with builder.route("forum"):
    builder.endpoint("{thread_id}", "view_thread")
    builder.endpoint("{thread_id}/posts", "create_post", method="POST")

tree = builder.build()
compiled = compile_schema(tree)
not_a_schema = 42
