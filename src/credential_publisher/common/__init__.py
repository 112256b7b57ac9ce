"""Cross-cutting helpers shared by adapters and the CLI."""
