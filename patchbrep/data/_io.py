"""Save and load B-spline surfaces to/from JSON, and write Wavefront OBJ.

The JSON format stores degree, knot vectors and u-major control points of
each surface. It is human-readable and reloads into identical
:class:`~patchbrep.geometry.BSplineSurface` objects.

Usage
-----
    from patchbrep.data import save_surfaces, load_surfaces, export_obj_bspline

    save_surfaces(surfaces, 'surfaces.json', extra_meta={'source': 'cube'})
    surfaces, meta = load_surfaces('surfaces.json')
    export_obj_bspline(shell, 'shell.obj')
"""

import json
from pathlib import Path
from typing import Optional

from patchbrep.geometry import BSplineSurface, Shell

FORMAT_TAG = 'patchbrep_surfaces_v1'


def _as_surfaces(surfaces) -> list:
    """Accept a Shell or any iterable of surfaces."""
    if isinstance(surfaces, Shell):
        return surfaces.surfaces()
    return list(surfaces)


def save_surfaces(
    surfaces,
    path: str = 'surfaces.json',
    extra_meta: Optional[dict] = None,
) -> str:
    """Serialize surfaces to a JSON file.

    Parameters
    ----------
    surfaces : iterable of BSplineSurface or Shell
        Surfaces to save; a Shell contributes its face surfaces.
    path : str or Path
        Output file path.
    extra_meta : dict or None
        Additional metadata to store.

    Returns
    -------
    str
        The path written to (for chaining).
    """
    entries = []
    for surface in _as_surfaces(surfaces):
        entries.append({
            'degree': [int(d) for d in surface.degree],
            'knots_u': surface.knots_u.tolist(),
            'knots_v': surface.knots_v.tolist(),
            'shape': [int(n) for n in surface.shape],
            'control_points': surface.control_points.tolist(),
        })

    state = {
        'format': FORMAT_TAG,
        'n_surfaces': len(entries),
        'surfaces': entries,
    }
    if extra_meta:
        state['meta'] = extra_meta

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(state, f, indent=2)

    return str(path)


def load_surfaces(path: str) -> tuple:
    """Load surfaces from a JSON file written by :func:`save_surfaces`.

    Returns
    -------
    surfaces : list of BSplineSurface
    meta : dict
        'format', 'n_surfaces' and any 'meta' extras.

    Raises
    ------
    ValueError
        If the file does not carry the expected format tag.
    """
    with open(path) as f:
        state = json.load(f)

    if state.get('format') != FORMAT_TAG:
        raise ValueError(
            f"{path} is not a patchbrep surface file (format={state.get('format')!r})"
        )

    surfaces = [
        BSplineSurface(s['knots_u'], s['knots_v'], s['control_points'],
                       degree=tuple(s.get('degree', (3, 3))))
        for s in state.get('surfaces', [])
    ]

    meta = {
        'format': state['format'],
        'n_surfaces': state.get('n_surfaces', len(surfaces)),
    }
    if 'meta' in state:
        meta.update(state['meta'])

    return surfaces, meta


def _fmt(x) -> str:
    return f"{float(x):.17g}"


def export_obj_bspline(surfaces, path: str = 'surfaces.obj') -> str:
    """Write surfaces as Wavefront OBJ free-form ``cstype bspline`` blocks.

    Control points of each surface are written with u varying fastest, and
    each surface gets one ``surf`` statement over its valid domain.

    Returns
    -------
    str
        The path written to.
    """
    lines = ['# patchbrep B-spline surfaces']
    offset = 1
    for surface in _as_surfaces(surfaces):
        n_u, n_v = surface.shape
        for j in range(n_v):
            for i in range(n_u):
                lines.append('v ' + ' '.join(_fmt(c) for c in surface.control_points[i, j]))
        indices = range(offset, offset + n_u * n_v)
        offset += n_u * n_v

        (u0, u1), (v0, v1) = surface.domain_u, surface.domain_v
        lines.append('cstype bspline')
        lines.append(f'deg {surface.degree[0]} {surface.degree[1]}')
        lines.append(
            f'surf {_fmt(u0)} {_fmt(u1)} {_fmt(v0)} {_fmt(v1)} '
            + ' '.join(str(k) for k in indices)
        )
        lines.append('parm u ' + ' '.join(_fmt(k) for k in surface.knots_u))
        lines.append('parm v ' + ' '.join(_fmt(k) for k in surface.knots_v))
        lines.append('end')

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write('\n'.join(lines) + '\n')

    return str(path)
