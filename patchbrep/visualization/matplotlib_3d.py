"""3D plots of control nets and stitched shells."""

import numpy as np

from patchbrep.geometry import Shell


def _new_axes(ax):
    import matplotlib.pyplot as plt

    if ax is None:
        fig = plt.figure()
        ax = fig.add_subplot(111, projection='3d')
    else:
        fig = ax.get_figure()
    return fig, ax


def _label(ax, title):
    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_zlabel('z')
    if title:
        ax.set_title(title)


def plot_control_nets(
    surfaces,
    ax=None,
    cmap: str = 'tab10',
    show_points: bool = True,
    linewidth: float = 0.8,
    title: str = None,
):
    """Draw the control net of each surface as a polyline grid.

    Parameters
    ----------
    surfaces : iterable of BSplineSurface or Shell
    ax : mpl_toolkits.mplot3d.Axes3D or None
        If None, a new 3D figure is created.
    cmap : str
        Colormap cycled over surfaces.
    show_points : bool
        Also scatter the control points.
    linewidth : float
    title : str or None

    Returns
    -------
    fig, ax
    """
    import matplotlib.pyplot as plt

    fig, ax = _new_axes(ax)
    if isinstance(surfaces, Shell):
        surfaces = surfaces.surfaces()
    colors = plt.get_cmap(cmap)

    for k, surface in enumerate(surfaces):
        cps = np.asarray(surface.control_points)
        color = colors(k % colors.N)
        for i in range(cps.shape[0]):
            ax.plot(cps[i, :, 0], cps[i, :, 1], cps[i, :, 2],
                    color=color, linewidth=linewidth)
        for j in range(cps.shape[1]):
            ax.plot(cps[:, j, 0], cps[:, j, 1], cps[:, j, 2],
                    color=color, linewidth=linewidth)
        if show_points:
            pts = cps.reshape(-1, 3)
            ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], color=color, s=6)

    _label(ax, title)
    return fig, ax


def plot_shell(
    shell: Shell,
    ax=None,
    samples: int = 8,
    surface_color: str = 'lightsteelblue',
    edge_color: str = 'k',
    vertex_color: str = 'r',
    alpha: float = 0.6,
    title: str = None,
):
    """Wireframe of each face surface with the shell's edges and vertices.

    Parameters
    ----------
    shell : Shell
    ax : mpl_toolkits.mplot3d.Axes3D or None
        If None, a new 3D figure is created.
    samples : int
        Evaluation samples per direction on every surface.
    surface_color, edge_color, vertex_color : str
    alpha : float
        Surface wireframe transparency.
    title : str or None

    Returns
    -------
    fig, ax
    """
    fig, ax = _new_axes(ax)

    for face in shell:
        grid = face.surface.sample_grid(samples, samples)
        ax.plot_wireframe(grid[..., 0], grid[..., 1], grid[..., 2],
                          color=surface_color, alpha=alpha, linewidth=0.5)

    for edge in shell.edges():
        pts = edge.curve.sample(max(samples, 2))
        ax.plot(pts[:, 0], pts[:, 1], pts[:, 2], color=edge_color, linewidth=1.2)

    vertices = shell.vertices()
    if vertices:
        pts = np.array([v.point for v in vertices])
        ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], color=vertex_color, s=12)

    _label(ax, title)
    return fig, ax
