# ============================================================================
# TOOLS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Tool - Command line entry points
# PURPOSE: Package marker so the CLI installs as a console script
# CREATED: 18 OCT 2026
# ============================================================================
