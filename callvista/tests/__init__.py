"""CallVista backend test suite."""
