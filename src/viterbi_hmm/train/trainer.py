"""
ViterbiTrainer for iterative decode/train cycles.

This module drives Viterbi training: each iteration decodes the observation
sequence with the current model and re-estimates the model from that path.
The stopping rule is chosen by the caller: a fixed iteration count, or a
log-likelihood improvement threshold.
"""

import time
from typing import Any, Callable, Dict, Iterable, Optional

from ..config import get_config
from ..exceptions import TrainingError
from ..hmm.model import ViterbiHMM
from ..hmm.path import Path
from ..logger import get_training_logger

logger = get_training_logger()


class ViterbiTrainer:
    """
    Repeated Viterbi training over one observation sequence.
    
    Log-likelihoods are those of the decoded paths; they are not guaranteed
    to increase from one iteration to the next.
    """
    
    def __init__(self,
                 max_iterations: Optional[int] = None,
                 convergence_tolerance: Optional[float] = None,
                 on_iteration: Optional[Callable[[int, ViterbiHMM, Path], None]] = None):
        """
        Initialize ViterbiTrainer.
        
        Args:
            max_iterations: Number of decode/train iterations
                (default: training.max_iterations config)
            convergence_tolerance: Stop early once the absolute log-likelihood
                change falls below this value; None runs every iteration
            on_iteration: Called as on_iteration(iteration, model, path) after
                each decode, before the model is re-estimated
        
        Raises:
            TrainingError: If max_iterations is not positive
        """
        if max_iterations is None:
            max_iterations = get_config('training', 'max_iterations')
            if max_iterations is None:
                max_iterations = 10
        if convergence_tolerance is None:
            convergence_tolerance = get_config('training', 'convergence_tolerance')
        
        if max_iterations < 1:
            raise TrainingError(f"max_iterations must be positive, got {max_iterations}")
        if convergence_tolerance is not None and convergence_tolerance < 0:
            raise TrainingError(
                f"convergence_tolerance must be non-negative, got {convergence_tolerance}"
            )
        
        self.max_iterations = max_iterations
        self.convergence_tolerance = convergence_tolerance
        self.on_iteration = on_iteration
        
        # Statistics of the last fit
        self.training_stats: Dict[str, Any] = {}
        
        logger.debug(f"ViterbiTrainer initialized: max_iterations={max_iterations}, "
                     f"tolerance={convergence_tolerance}")
    
    def fit(self, model: ViterbiHMM, observations: Iterable) -> Dict[str, Any]:
        """
        Run Viterbi training on a model in place.
        
        Args:
            model: Model to re-estimate
            observations: Observation sequence decoded at every iteration
        
        Returns:
            Dictionary with training statistics:
            - 'converged': Whether the tolerance stopped training early
            - 'iterations': Number of decode/train iterations performed
            - 'final_log_likelihood': Log-likelihood of the last decoded path
            - 'log_likelihood_history': Log-likelihood per iteration
            - 'improvement_history': Change between consecutive iterations
            - 'unvisited_states': Identifiers pruned on the last iteration
            - 'training_time': Wall-clock seconds
            - 'final_path': Last decoded path
        
        Raises:
            DecodingError: If the model cannot decode the sequence
        """
        sequence = list(observations)
        start_time = time.time()
        
        log_likelihood_history = []
        improvement_history = []
        converged = False
        path = None
        unvisited = []
        
        logger.info(f"Starting Viterbi training: T={len(sequence)}, "
                    f"max_iterations={self.max_iterations}")
        
        for iteration in range(1, self.max_iterations + 1):
            path = model.decode(sequence)
            log_likelihood_history.append(path.log_likelihood)
            
            if self.on_iteration is not None:
                self.on_iteration(iteration, model, path)
            
            unvisited = model.train(path)
            
            if len(log_likelihood_history) > 1:
                improvement = log_likelihood_history[-1] - log_likelihood_history[-2]
                improvement_history.append(improvement)
                
                logger.info(f"Iteration {iteration}: log_likelihood={path.log_likelihood:.6f}, "
                            f"improvement={improvement:.6f}")
                
                if improvement < -1e-6:
                    logger.warning(f"Log-likelihood decreased by {-improvement:.6f} "
                                   f"at iteration {iteration}")
                
                if (self.convergence_tolerance is not None
                        and abs(improvement) < self.convergence_tolerance):
                    converged = True
                    logger.info(f"Converged after {iteration} iterations "
                                f"(|improvement| {abs(improvement):.6f} < "
                                f"tolerance {self.convergence_tolerance})")
                    break
            else:
                logger.info(f"Iteration {iteration}: log_likelihood={path.log_likelihood:.6f}")
        
        self.training_stats = {
            'converged': converged,
            'iterations': len(log_likelihood_history),
            'final_log_likelihood': log_likelihood_history[-1],
            'log_likelihood_history': log_likelihood_history,
            'improvement_history': improvement_history,
            'unvisited_states': [state.identifier for state in unvisited],
            'training_time': time.time() - start_time,
            'final_path': path
        }
        
        logger.debug(f"Training completed: converged={converged}, "
                     f"iterations={len(log_likelihood_history)}")
        
        return self.training_stats
