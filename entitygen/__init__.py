"""Entity code generation: schema parsing, field strategies, artifact rendering."""
