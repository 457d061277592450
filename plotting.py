import os
import numpy as np
import matplotlib
# headless runs
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from utils import ensure_dir
from state import SPECIES

def plot_phases(T, y_dict, f_dict, outdir, tag, stimulus=None):
    ensure_dir(outdir)

    # 1) Species
    fig,ax = plt.subplots(len(SPECIES),1,figsize=(7,10),sharex=True)
    for a,name in zip(ax,SPECIES):
        a.plot(T, y_dict[name]); a.set_ylabel(f"{name} [mM]")
        if stimulus is not None: a.axvline(stimulus,color='k',lw=0.8,ls='--')
        a.grid(True,alpha=0.3)
    ax[-1].set_xlabel("Time [min]")
    fig.suptitle(f"Species — {tag}")
    fig.tight_layout(rect=[0,0,1,0.97])
    fig.savefig(os.path.join(outdir, f"{tag}_01_species.png"), dpi=200); plt.close(fig)

    # 2) Fluxes
    plt.figure()
    plt.plot(T, f_dict["v_treh"], label="trehalose breakdown")
    plt.plot(T, f_dict["v_glc"], label="glucose consumption")
    plt.plot(T, f_dict["v_lac"], label="lactate consumption")
    plt.plot(T, f_dict["v_o2"], label="oxygen consumption")
    plt.xlabel("Time [min]"); plt.ylabel("mM/min"); plt.title(f"Fluxes — {tag}")
    plt.legend(); plt.grid(True,alpha=0.3); plt.tight_layout()
    plt.savefig(os.path.join(outdir, f"{tag}_02_fluxes.png"), dpi=200); plt.close()

def plot_normalization(X, raw, reference, normalized, outdir, tag, fit_window=None):
    ensure_dir(outdir)
    fig,ax = plt.subplots(2,1,figsize=(7,6),sharex=True)
    ax[0].plot(X, raw, label="trace")
    ax[0].plot(X, reference, ls='--', label="fit / baseline")
    ax[0].set_ylabel("mM"); ax[0].legend()
    ax[1].plot(X, normalized); ax[1].axhline(1.0,color='k',lw=0.8)
    ax[1].set_ylabel("ratio to fit"); ax[1].set_xlabel("Time [min]")
    for a in ax:
        if fit_window is not None: a.axvspan(X[0], X[0]+fit_window, color='0.9')
        a.grid(True,alpha=0.3)
    fig.suptitle(f"Normalization — {tag}")
    fig.tight_layout(rect=[0,0,1,0.96])
    fig.savefig(os.path.join(outdir, f"{tag}_03_normalization.png"), dpi=200); plt.close(fig)

def plot_ensemble(table, outdir, tag, ylabel="ratio to fit"):
    """table: DataFrame with a `time` column and one column per trial."""
    ensure_dir(outdir)
    T = table["time"].to_numpy()
    traces = table.drop(columns="time").to_numpy()
    plt.figure(figsize=(8,5))
    if traces.size:
        plt.plot(T, traces, color='C0', lw=0.5, alpha=0.15)
        plt.plot(T, np.nanmean(traces,axis=1), color='k', lw=2, label="mean")
        plt.legend()
    plt.xlabel("Time [min]"); plt.ylabel(ylabel)
    plt.title(f"Trace ensemble — {tag} (n={traces.shape[1]})"); plt.grid(True,alpha=0.3); plt.tight_layout()
    plt.savefig(os.path.join(outdir, f"{tag}_ensemble.png"), dpi=200); plt.close()

def plot_auc_scatter(summary, outdir, tag):
    ensure_dir(outdir)
    plt.figure()
    sc = plt.scatter(summary["k_oxygen_consumption"], summary["AUC"], c=summary["ATP"], s=12, cmap="viridis")
    plt.colorbar(sc, label="ATP [mM]")
    plt.xlabel("k_oxygen_consumption"); plt.ylabel("AUC")
    plt.title(f"AUC by trial — {tag}"); plt.grid(True,alpha=0.3); plt.tight_layout()
    plt.savefig(os.path.join(outdir, f"{tag}_auc_scatter.png"), dpi=200); plt.close()

def sensitivity_heatmap(X, Y, Z, xlab, ylab, title, outpath):
    plt.figure(figsize=(6,5))
    im = plt.imshow(Z, origin='lower', aspect='auto',
                    extent=[X.min(), X.max(), Y.min(), Y.max()])
    plt.colorbar(im, label="AUC")
    plt.xlabel(xlab); plt.ylabel(ylab); plt.title(title)
    plt.tight_layout(); plt.savefig(outpath, dpi=200); plt.close()
