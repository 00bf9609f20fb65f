"""Engine core: orchestration, configuration, logging and audit."""
