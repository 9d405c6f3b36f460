"""Link application and the transmission consistency guard."""
