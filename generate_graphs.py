import matplotlib.pyplot as plt
from replacement import POLICIES, ReplacementSimulator

metrics = ['page_faults', 'allocation_time', 'response_time', 'thrashing_rate']
titles = ['Page Faults', 'Allocation Time (micros)', 'Response Time (micros)', 'Thrashing Rate']


def plot_comparison(results, filename='policy_comparison.png', show=False):
    fig, axes = plt.subplots(1, len(metrics), figsize=(5 * len(metrics), 5))
    fig.suptitle('FIFO vs LRU Page Replacement', fontsize=14, fontweight='bold')

    for ax, metric, title in zip(axes, metrics, titles):
        values = [getattr(results[policy], metric) for policy in POLICIES]
        bars = ax.bar(POLICIES, values, color=['tab:blue', 'tab:orange'])

        for bar in bars:
            height = bar.get_height()
            ax.text(bar.get_x() + bar.get_width()/2., height,
                    f'{height:.2f}', ha='center', va='bottom', fontsize=9)

        ax.set_title(title)
        ax.grid(axis='y', alpha=0.3)

    plt.tight_layout()
    plt.savefig(filename, dpi=300, bbox_inches='tight')
    if show:
        plt.show()
    plt.close(fig)
    return filename


if __name__ == '__main__':
    print("Running simulations...")
    simulator = ReplacementSimulator(total_frames=10, process_count=50)
    saved = plot_comparison(simulator.compare(), show=True)
    print(f"\nGraph saved as '{saved}'")
