"""
Bootstrap service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → resolver → detection → execution →
projection → orchestration)::

    from riverspider_setup.core.services.bootstrap import run_setup
"""

# ── L2: Resolver ──
from riverspider_setup.core.services.bootstrap.resolver.locator import (  # noqa: F401
    locate_target_directory,
    shell_locator,
)
from riverspider_setup.core.services.bootstrap.resolver.target_directory import (  # noqa: F401
    ResolveState,
    TargetDirectoryResolver,
    ensure_secret_initialized,
    resolve_target_directory,
)

# ── L3: Detection ──
from riverspider_setup.core.services.bootstrap.detection.environment import (  # noqa: F401
    probe_system,
)
from riverspider_setup.core.services.bootstrap.detection.network import (  # noqa: F401
    check_internet,
)

# ── L4: Execution ──
from riverspider_setup.core.services.bootstrap.execution.subprocess_runner import (  # noqa: F401
    TaskResult,
    run_command,
    run_task,
)
from riverspider_setup.core.services.bootstrap.execution.text_mutator import (  # noqa: F401
    MutationStatus,
    ensure_line_present,
    replace_exact_line,
    replace_or_append_pattern,
)

# ── L4: Projection ──
from riverspider_setup.core.services.bootstrap.projection.config_projector import (  # noqa: F401
    absolutize_script_paths,
    inject_shell_functions,
    project_config,
)

# ── L5: Orchestration ──
from riverspider_setup.core.services.bootstrap.orchestration.orchestrator import (  # noqa: F401
    run_setup,
)
