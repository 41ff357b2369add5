"""
L0 Data — Shell function block injected into the user's profile.

The block gives every future shell the ``riverspider`` command plus the
Logisim launchers, and carries its own copy of the locate-and-export
logic so it keeps working after the installer is gone.  That copy is
rendered from the same search command the installer itself uses (see
``resolver.locator.shell_locator``), so both find the same directory.

``%%{name}`` placeholders are filled at render time; everything else is
literal shell.
"""

from __future__ import annotations

from string import Template

from riverspider_setup.core.models.config import ProfileNames, TargetSettings
from riverspider_setup.core.models.facts import ProfileInjection

MARKER_FUNCTION = "riverspider"


class _BlockTemplate(Template):
    delimiter = "%%"


_BLOCK = _BlockTemplate(r'''#=======  River Spider helper function =======
riverspider() {
  local ttpasm_file=$1
  if [[ -z "$ttpasm_file" || "$1" == "-h" || "$1" == "--help" ]]; then
    echo "Usage: riverspider <filename>.ttpasm"
    return 1
  fi
  if [[ "${ttpasm_file##*.}" != "ttpasm" ]]; then
    echo "Error: File must have .ttpasm extension."
    return 1
  fi
  if [[ ! -f "$ttpasm_file" ]]; then
    echo "Error: File '$ttpasm_file' not found."
    return 1
  fi
  locate_riverspider_dir || return 1
  "$%%{env_var}/%%{marker_file}" "$(realpath "$ttpasm_file")"
}
locate_riverspider_dir() {
  if [[ -z "${%%{env_var}:-}" || ! -d "$%%{env_var}" ]]; then
    %%{env_var}=$(%%{locator})
    if [[ -z "$%%{env_var}" || ! -d "$%%{env_var}" ]]; then
      echo "Error: Could not locate the %%{dir_name} directory."
      echo "See Canvas for download instructions."
      return 1
    fi
    export %%{env_var}
    add_riverspider_to_profile "export %%{env_var}=\"$%%{env_var}\""
  fi
}
add_riverspider_to_profile() {
  local line_to_set="$1"
  local pattern_to_find="^export %%{env_var}="
  local current_shell="$(basename "${SHELL:-}")"
  local shell_profile=""
  case "$current_shell" in
    zsh) shell_profile="${ZDOTDIR:-$HOME}/%%{zsh_profile}" ;;
    bash) shell_profile="$HOME/%%{bash_profile}" ;;
  esac
  if [[ -z "$shell_profile" || ! -f "$shell_profile" ]]; then
    echo "Could not add %%{env_var} to shell profile."
    echo "Add manually: $line_to_set"
    return 0
  fi
  if grep -q "$pattern_to_find" "$shell_profile"; then
    sed -i'' -e "s#${pattern_to_find}.*#${line_to_set}#" "$shell_profile" ||
      echo "Could not add %%{env_var} to $shell_profile. Add manually: $line_to_set"
  else
    { echo ""; echo "$line_to_set"; echo ""; } >> "$shell_profile" ||
      echo "Could not add %%{env_var} to $shell_profile. Add manually: $line_to_set"
  fi
}
#=============================================

#=======  Logisim helper function =======

logisim() {
  if [[ "$#" -eq 0 ]]; then
    java -jar "$%%{env_var}/%%{logisim_jar}"
    return $?
  fi

  local arg1="$1"

  if [[ "$arg1" == "-h" || "$arg1" == "--help" ]]; then
    echo "Usage: logisim [<filename.circ>]"
    echo "       logisim -h | --help     Show this help message"
    echo ""
    return 1
  fi

  if [[ "${arg1##*.}" != "circ" ]]; then
    echo "Error: File '$arg1' must have a .circ extension." >&2
    return 1
  fi

  if [[ ! -f "$arg1" ]]; then
    echo "Error: File '$arg1' not found." >&2
    return 1
  fi

  java -jar "$%%{env_var}/%%{logisim_jar}" "$arg1"
  return $?
}

logproc(){
  java -jar "$%%{env_var}/%%{logisim_jar}" "$%%{env_var}/%%{processor_circ}"
}

logalu(){
  java -jar "$%%{env_var}/%%{logisim_jar}" "$%%{env_var}/alu.circ"
}

logreg(){
  java -jar "$%%{env_var}/%%{logisim_jar}" "$%%{env_var}/regbank.circ"
}

#========================================
''')


def render_function_block(
    target: TargetSettings,
    profiles: ProfileNames,
    *,
    locator: str,
) -> ProfileInjection:
    """Fill the block for the configured bundle and profile filenames.

    Args:
        target: Bundle settings (env var, file names).
        profiles: Profile filenames baked into ``add_riverspider_to_profile``.
        locator: Shell pipeline printing the target directory, or nothing.
    """
    block = _BLOCK.substitute(
        env_var=target.env_var,
        marker_file=target.marker_file,
        dir_name=target.dir_name,
        logisim_jar=target.logisim_jar,
        processor_circ=target.processor_circ,
        zsh_profile=profiles.zsh,
        bash_profile=profiles.bash,
        locator=locator,
    )
    return ProfileInjection(marker=MARKER_FUNCTION, block=block)
