from pathlib import Path
from typing import Optional

import pandas as pd
import typer

from clusterpack import ClusterLayout, GroupingDescriptor, LinearScale


def main(
        records_path: Path,
        output_path: Path,
        group_by: str,
        width: float = 800.0,
        height: float = 600.0,
        method: str = 'bar',
        pixels_per_unit: float = 1.0,
        color: Optional[str] = None,
        timeout: Optional[float] = None,
        verbose: bool = False
):
    print(f'Loading records from {records_path}...')
    data = pd.read_csv(records_path)
    if group_by not in data.columns:
        raise typer.BadParameter(f'Column {group_by} not found, available columns: {", ".join(data.columns)}.')

    records = data.to_dict(orient='records')
    grouping = GroupingDescriptor(
        values=tuple(pd.unique(data[group_by])),
        name=group_by,
        color=color
    )
    radius_scale = LinearScale(domain=(0, 1), range=(0, pixels_per_unit))

    layout = ClusterLayout(method=method, timeout=timeout)
    clusters = layout.fit_transform(grouping, records, radius_scale, width, height, verbose=verbose)

    rows = []
    for cluster in clusters:
        for point in cluster.drawn_points:
            rows.append({
                **point.payload,
                'cluster': cluster.name,
                'point_id': point.id,
                'x': cluster.x + point.x,
                'y': cluster.y + point.y,
                'r': point.r
            })

    pd.DataFrame(rows).to_csv(output_path, index=False)
    print(f'Wrote {len(rows)} points of {len(clusters)} clusters to {output_path}.')


if __name__ == '__main__':
    typer.run(main)
