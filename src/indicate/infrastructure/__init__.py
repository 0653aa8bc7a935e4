"""Infrastructure layer — cargo metadata, dependency index, backend clients.

This layer depends on stdlib, the domain layer, and third-party libs
(NetworkX, httpx). It must never import from services, commands, or output.
The adapter bridges between the query engine and these components.
"""
